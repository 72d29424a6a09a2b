import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from flota.core.estados import (
    ESTADOS_ACTIVOS, EstadoPagoChofer, EstadoViaje, ModalidadPago, transicion_permitida,
)
from flota.core.fechas import a_datetime
from flota.core.finanzas import (
    calcular_balance_chofer, calcular_resumen_economico, estado_pago_para,
    pagos_chofer_pagados, sumar_montos,
)
from flota.core.montos import CERO, a_decimal, a_mongo, montos_a_mongo, montos_desde_mongo
from flota.core.secuencias import siguiente_id
from flota.modules.auditoria.service import AuditoriaService
from flota.modules.dataservice.models.catalogos import EstadoRegistro, EstadoVehiculo
from flota.modules.dataservice.services.base_service import sin_enums
from flota.modules.dataservice.services.catalogos_service import VehiculoService
from flota.modules.viajes.model import CAMPOS_MONTO, Viaje
from flota.modules.viajes.schema import ViajeFilter

logger = logging.getLogger(__name__)

VENTANA_SIN_LLEGADA = timedelta(hours=24)
DIAS_MAX_PASADO = 30
FACTOR_KM_MINIMO = 0.3
FACTOR_KM_MAXIMO = 3

MENSAJE_VIAJE_MODIFICADO = "El viaje fue modificado por otra operación. Recargue e intente de nuevo"

CAMPOS_FECHA = ("fecha_salida", "fecha_llegada_estimada", "fecha_llegada_real", "fecha_limite_pago")


def fecha_limite_pago(fecha_salida: datetime, dias_credito: int) -> Optional[datetime]:
    if not dias_credito:
        return None
    return fecha_salida + timedelta(days=dias_credito)


class ViajeService:
    def __init__(self, db):
        self.db = db
        self.collection = db["viajes"]
        self.gastos_collection = db["gastos_viaje"]
        self.pagos_collection = db["pagos_chofer"]
        self.auditoria = AuditoriaService(db)

    # ------------------------------------------------------------------ helpers

    def _prepare_response(self, viaje: Optional[dict]) -> Optional[dict]:
        if not viaje:
            return None
        viaje["id"] = viaje.pop("_id")
        return montos_desde_mongo(viaje, CAMPOS_MONTO)

    def _referencias(self, viajes: List[dict]) -> None:
        """Adjunta los datos mínimos de vehículo, chofer, cliente y material"""
        proyecciones = {
            "vehiculo": ("vehiculos", {"placa": 1, "marca": 1, "modelo": 1}),
            "chofer": ("choferes", {"nombres": 1, "apellidos": 1, "telefono": 1, "modalidad_pago": 1}),
            "cliente": ("clientes", {"nombre_razon_social": 1}),
            "material": ("materiales", {"nombre": 1}),
        }
        for campo, (coleccion, proyeccion) in proyecciones.items():
            ids = {v.get(f"{campo}_id") for v in viajes if v.get(f"{campo}_id") is not None}
            if not ids:
                continue
            registros = {
                r["_id"]: r for r in self.db[coleccion].find({"_id": {"$in": list(ids)}}, proyeccion)
            }
            for viaje in viajes:
                registro = registros.get(viaje.get(f"{campo}_id"))
                if registro:
                    datos = dict(registro)
                    datos["id"] = datos.pop("_id")
                    viaje[campo] = datos

    def _pagos_de(self, viaje_ids: List[int]) -> List[dict]:
        pagos = list(self.pagos_collection.find({"viaje_id": {"$in": viaje_ids}}).sort("fecha", -1))
        for pago in pagos:
            pago["id"] = pago.pop("_id")
            montos_desde_mongo(pago, ("monto",))
        return pagos

    def _gastos_de(self, viaje_id: int) -> List[dict]:
        gastos = list(self.gastos_collection.find({"viaje_id": viaje_id}).sort("fecha", -1))
        for gasto in gastos:
            gasto["id"] = gasto.pop("_id")
            montos_desde_mongo(gasto, ("monto",))
        return gastos

    def _buscar_solapamiento(
        self,
        inicio: datetime,
        fin: Optional[datetime],
        vehiculo_id: int,
        chofer_id: int,
        excluir_id: Optional[int] = None,
    ) -> Optional[dict]:
        fin = fin or inicio + VENTANA_SIN_LLEGADA
        query: Dict[str, Any] = {
            "estado": {"$in": [e.value for e in ESTADOS_ACTIVOS]},
            "$or": [{"vehiculo_id": vehiculo_id}, {"chofer_id": chofer_id}],
        }
        if excluir_id is not None:
            query["_id"] = {"$ne": excluir_id}

        for otro in self.collection.find(query).sort("fecha_salida", 1):
            otro_inicio = otro["fecha_salida"]
            otro_fin = otro.get("fecha_llegada_estimada") or otro_inicio + VENTANA_SIN_LLEGADA
            if otro_inicio <= fin and otro_fin >= inicio:
                return otro
        return None

    def _validar_referencias(self, datos: dict) -> None:
        errores = []
        vehiculo = chofer = cliente = None

        if "vehiculo_id" in datos:
            vehiculo = self.db["vehiculos"].find_one({"_id": datos["vehiculo_id"]})
            if not vehiculo:
                errores.append("Vehículo no encontrado")
            elif vehiculo.get("estado") == EstadoVehiculo.INACTIVO.value:
                errores.append(f"El vehículo {vehiculo['placa']} está INACTIVO. Active el vehículo antes de asignar viajes.")
            elif vehiculo.get("estado") == EstadoVehiculo.EN_MANTENIMIENTO.value:
                errores.append(f"El vehículo {vehiculo['placa']} está EN MANTENIMIENTO. Complete el mantenimiento antes de asignar viajes.")

        if "chofer_id" in datos:
            chofer = self.db["choferes"].find_one({"_id": datos["chofer_id"]})
            if not chofer:
                errores.append("Chofer no encontrado")
            elif chofer.get("estado") != EstadoRegistro.ACTIVO.value:
                errores.append(f"El chofer {chofer['nombres']} {chofer['apellidos']} está INACTIVO. Active el chofer antes de asignar viajes.")

        if "cliente_id" in datos:
            cliente = self.db["clientes"].find_one({"_id": datos["cliente_id"]})
            if not cliente:
                errores.append("Cliente no encontrado")
            elif cliente.get("estado") != EstadoRegistro.ACTIVO.value:
                errores.append(f"El cliente {cliente['nombre_razon_social']} está INACTIVO. Active el cliente antes de asignar viajes.")

        if "material_id" in datos and not self.db["materiales"].find_one({"_id": datos["material_id"]}):
            errores.append("Material no encontrado")

        if errores:
            raise ValueError(", ".join(errores))

        hoy = date.today()
        if vehiculo:
            vencidos = [
                nombre for campo, nombre in (
                    ("fecha_vencimiento_soat", "SOAT"),
                    ("fecha_vencimiento_seguro", "Seguro"),
                    ("fecha_vencimiento_matricula", "Matrícula"),
                )
                if vehiculo.get(campo) and vehiculo[campo].date() < hoy
            ]
            if vencidos:
                raise ValueError(
                    f"El vehículo {vehiculo['placa']} tiene documentos vencidos: {', '.join(vencidos)}. "
                    "Actualice los documentos antes de asignar viajes."
                )

        if chofer and chofer.get("fecha_vencimiento_licencia") and chofer["fecha_vencimiento_licencia"].date() < hoy:
            raise ValueError(
                f"La licencia del chofer {chofer['nombres']} {chofer['apellidos']} está vencida. "
                "Actualice antes de asignar viajes."
            )

    def _exigir_pago_chofer(self, chofer_id: int, monto_pago_chofer: Any) -> None:
        chofer = self.db["choferes"].find_one({"_id": chofer_id}, {"modalidad_pago": 1})
        if chofer and chofer.get("modalidad_pago") == ModalidadPago.POR_VIAJE.value:
            if a_decimal(monto_pago_chofer) <= CERO:
                raise ValueError("El monto a pagar al chofer es requerido para choferes con modalidad POR_VIAJE")

    # --------------------------------------------------------------- consultas

    def listar(self, filtros: Optional[ViajeFilter] = None, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if filtros:
            if filtros.estado:
                query["estado"] = filtros.estado.value
            if filtros.estado_pago_cliente:
                query["estado_pago_cliente"] = filtros.estado_pago_cliente
            for campo in ("vehiculo_id", "chofer_id", "cliente_id"):
                if getattr(filtros, campo) is not None:
                    query[campo] = getattr(filtros, campo)
            if filtros.fecha_desde or filtros.fecha_hasta:
                query["fecha_salida"] = {}
                if filtros.fecha_desde:
                    query["fecha_salida"]["$gte"] = a_datetime(filtros.fecha_desde)
                if filtros.fecha_hasta:
                    query["fecha_salida"]["$lte"] = a_datetime(filtros.fecha_hasta)

        total = self.collection.count_documents(query)
        viajes = [
            self._prepare_response(v) for v in
            self.collection.find(query).sort("fecha_salida", -1).skip((page - 1) * limit).limit(limit)
        ]

        pagos = self._pagos_de([v["id"] for v in viajes])
        for viaje in viajes:
            viaje["pagado_chofer"] = sumar_montos(pagos_chofer_pagados(pagos, viaje["id"]))
        self._referencias(viajes)

        return {"items": viajes, "total": total}

    def obtener(self, viaje_id: int) -> Optional[dict]:
        return self._prepare_response(self.collection.find_one({"_id": viaje_id}))

    def obtener_detalle(self, viaje_id: int) -> Optional[dict]:
        viaje = self.obtener(viaje_id)
        if not viaje:
            return None

        gastos = self._gastos_de(viaje_id)
        pagos = self._pagos_de([viaje_id])
        self._referencias([viaje])
        viaje["gastos"] = gastos
        viaje["pagos"] = pagos

        return {
            "viaje": viaje,
            "resumen_economico": calcular_resumen_economico(viaje, gastos, pagos).to_dict(),
            "balance_chofer": calcular_balance_chofer(viaje, pagos).to_dict(),
        }

    # ------------------------------------------------------------ operaciones

    def crear(self, datos: dict, usuario: Optional[dict] = None) -> dict:
        try:
            datos = sin_enums(dict(datos))
            fechas = {c: a_datetime(datos.get(c)) for c in ("fecha_salida", "fecha_llegada_estimada")}
            datos.update(fechas)

            if datos["fecha_salida"] < datetime.now() - timedelta(days=DIAS_MAX_PASADO):
                raise ValueError("La fecha de salida no puede ser mayor a 30 días en el pasado")

            self._validar_referencias(datos)

            conflicto = self._buscar_solapamiento(
                datos["fecha_salida"], datos.get("fecha_llegada_estimada"),
                datos["vehiculo_id"], datos["chofer_id"],
            )
            if conflicto:
                tipo = "El vehículo" if conflicto["vehiculo_id"] == datos["vehiculo_id"] else "El chofer"
                raise ValueError(f"{tipo} ya tiene un viaje asignado en ese horario (Viaje #{conflicto['_id']})")

            if datos.get("fecha_llegada_estimada") and datos["fecha_salida"] >= datos["fecha_llegada_estimada"]:
                raise ValueError("La fecha de salida debe ser anterior a la fecha de llegada estimada")

            if a_decimal(datos.get("tarifa")) <= CERO:
                raise ValueError("La tarifa debe ser mayor a 0")

            self._exigir_pago_chofer(datos["chofer_id"], datos.get("monto_pago_chofer"))

            datos["fecha_limite_pago"] = fecha_limite_pago(datos["fecha_salida"], datos.get("dias_credito", 0))
            viaje = sin_enums(Viaje(**datos).model_dump())
            viaje["_id"] = siguiente_id(
                counters_collection=self.db["counters"],
                target_collection=self.collection,
                sequence_name="viajes",
            )
            self.collection.insert_one(montos_a_mongo(viaje, CAMPOS_MONTO))

            creado = self.obtener(viaje["_id"])
            self.auditoria.registrar(usuario, "CREAR", "viaje", creado["id"], datos_nuevos=creado)
            logger.info(f"Viaje #{creado['id']} creado: {creado['origen']} -> {creado['destino']}")
            return creado

        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error al crear viaje: {str(e)}")
            raise

    def actualizar(self, viaje_id: int, update_data: dict, usuario: Optional[dict] = None) -> Optional[dict]:
        anterior = self.obtener(viaje_id)
        if not anterior:
            return None

        if anterior["estado"] in (EstadoViaje.COMPLETADO.value, EstadoViaje.CANCELADO.value):
            raise ValueError("No se puede editar un viaje completado o cancelado")

        cambios = {k: v for k, v in update_data.items() if v is not None}
        if not cambios:
            return anterior

        for campo in ("fecha_salida", "fecha_llegada_estimada"):
            if campo in cambios:
                cambios[campo] = a_datetime(cambios[campo])

        self._validar_referencias({k: cambios[k] for k in ("vehiculo_id", "chofer_id", "cliente_id") if k in cambios})

        resultado = {**anterior, **cambios}
        if resultado.get("fecha_llegada_estimada") and resultado["fecha_salida"] >= resultado["fecha_llegada_estimada"]:
            raise ValueError("La fecha de salida debe ser anterior a la fecha de llegada estimada")

        if {"vehiculo_id", "chofer_id", "fecha_salida", "fecha_llegada_estimada"} & cambios.keys():
            conflicto = self._buscar_solapamiento(
                resultado["fecha_salida"], resultado.get("fecha_llegada_estimada"),
                resultado["vehiculo_id"], resultado["chofer_id"], excluir_id=viaje_id,
            )
            if conflicto:
                tipo = "El vehículo" if conflicto["vehiculo_id"] == resultado["vehiculo_id"] else "El chofer"
                raise ValueError(f"{tipo} ya tiene un viaje asignado en ese horario (Viaje #{conflicto['_id']})")

        if "chofer_id" in cambios or "monto_pago_chofer" in cambios:
            self._exigir_pago_chofer(resultado["chofer_id"], resultado.get("monto_pago_chofer"))

        if "fecha_salida" in cambios:
            cambios["fecha_limite_pago"] = fecha_limite_pago(cambios["fecha_salida"], anterior.get("dias_credito", 0))

        self.collection.update_one({"_id": viaje_id}, {"$set": montos_a_mongo(cambios, CAMPOS_MONTO)})

        actualizado = self.obtener(viaje_id)
        self.auditoria.registrar(
            usuario, "EDITAR", "viaje", viaje_id,
            datos_anteriores=anterior, datos_nuevos=actualizado,
        )
        return actualizado

    def cambiar_estado(
        self,
        viaje_id: int,
        nuevo_estado: EstadoViaje,
        usuario: Optional[dict] = None,
        fecha_llegada_real: Optional[datetime] = None,
        kilometros_reales: Optional[float] = None,
    ) -> Optional[dict]:
        viaje = self.obtener(viaje_id)
        if not viaje:
            return None

        nuevo_estado = EstadoViaje(nuevo_estado)
        if not transicion_permitida(viaje["estado"], nuevo_estado):
            raise ValueError(f"No se puede cambiar de estado {viaje['estado']} a {nuevo_estado.value}")

        cambios: Dict[str, Any] = {"estado": nuevo_estado.value}

        if nuevo_estado == EstadoViaje.COMPLETADO:
            cambios["fecha_llegada_real"] = a_datetime(fecha_llegada_real) or datetime.now()

            if kilometros_reales:
                estimados = viaje.get("kilometros_estimados") or 0
                if estimados > 0:
                    if kilometros_reales < estimados * FACTOR_KM_MINIMO:
                        raise ValueError(
                            f"Kilometraje real ({kilometros_reales} km) es sospechosamente bajo "
                            f"para un viaje estimado en {estimados} km. Verifique los datos."
                        )
                    if kilometros_reales > estimados * FACTOR_KM_MAXIMO:
                        raise ValueError(
                            f"Kilometraje real ({kilometros_reales} km) excede significativamente "
                            f"el estimado ({estimados} km). Verifique los datos."
                        )
                cambios["kilometros_reales"] = kilometros_reales

        # Solo si nadie cambió el estado desde la lectura
        resultado = self.collection.update_one({"_id": viaje_id, "estado": viaje["estado"]}, {"$set": cambios})
        if resultado.matched_count == 0:
            raise ValueError(MENSAJE_VIAJE_MODIFICADO)
        self._efectos_de_estado(viaje, nuevo_estado, cambios)

        self.auditoria.registrar(
            usuario, "EDITAR", "viaje", viaje_id,
            datos_anteriores={"estado": viaje["estado"]},
            datos_nuevos=cambios,
        )
        logger.info(f"Viaje #{viaje_id}: {viaje['estado']} -> {nuevo_estado.value}")
        return self.obtener(viaje_id)

    def _efectos_de_estado(self, viaje: dict, nuevo_estado: EstadoViaje, cambios: dict) -> None:
        vehiculos = VehiculoService(self.db)

        if nuevo_estado == EstadoViaje.EN_CURSO:
            vehiculos.cambiar_estado(viaje["vehiculo_id"], EstadoVehiculo.EN_RUTA)
            return

        vehiculos.cambiar_estado(viaje["vehiculo_id"], EstadoVehiculo.ACTIVO)
        if nuevo_estado == EstadoViaje.COMPLETADO and cambios.get("kilometros_reales"):
            vehiculos.sumar_kilometraje(viaje["vehiculo_id"], cambios["kilometros_reales"])

        if nuevo_estado != EstadoViaje.COMPLETADO or a_decimal(viaje.get("monto_pago_chofer")) <= CERO:
            return

        chofer = self.db["choferes"].find_one({"_id": viaje["chofer_id"]}) or {}
        if chofer.get("modalidad_pago") != ModalidadPago.POR_VIAJE.value:
            return
        if self.pagos_collection.find_one({"viaje_id": viaje["id"]}, {"_id": 1}):
            return

        pago_id = siguiente_id(
            counters_collection=self.db["counters"],
            target_collection=self.pagos_collection,
            sequence_name="pagos_chofer",
        )
        self.pagos_collection.insert_one({
            "_id": pago_id,
            "chofer_id": viaje["chofer_id"],
            "viaje_id": viaje["id"],
            "monto": a_mongo(viaje["monto_pago_chofer"]),
            "fecha": cambios.get("fecha_llegada_real") or datetime.now(),
            "metodo_pago": chofer.get("metodo_pago") or "EFECTIVO",
            "descripcion": f"{viaje['origen']} - {viaje['destino']}",
            "estado": EstadoPagoChofer.PENDIENTE.value,
            "fecha_pago_real": None,
            "comprobante": None,
            "fecha_registro": datetime.now(),
        })
        logger.info(f"Pago PENDIENTE #{pago_id} generado para el chofer {viaje['chofer_id']} (viaje #{viaje['id']})")

    def registrar_pago_cliente(self, viaje_id: int, monto: Any, usuario: Optional[dict] = None) -> Optional[dict]:
        guardado = self.collection.find_one({"_id": viaje_id})
        if not guardado:
            return None
        pagado_leido = guardado.get("monto_pagado_cliente")
        viaje = self._prepare_response(guardado)

        monto = a_decimal(monto)
        if monto <= CERO:
            raise ValueError("El monto del pago debe ser mayor a 0")

        tarifa = a_decimal(viaje["tarifa"])
        pagado_antes = a_decimal(viaje.get("monto_pagado_cliente"))
        pagado_total = pagado_antes + monto

        if pagado_total > tarifa:
            raise ValueError(f"El monto excede la deuda pendiente. Máximo a pagar: {tarifa - pagado_antes}")

        estado_pago = estado_pago_para(pagado_total, tarifa)
        resultado = self.collection.update_one(
            {"_id": viaje_id, "monto_pagado_cliente": pagado_leido},
            {"$set": {"monto_pagado_cliente": a_mongo(pagado_total), "estado_pago_cliente": estado_pago.value}}
        )
        if resultado.matched_count == 0:
            raise ValueError(MENSAJE_VIAJE_MODIFICADO)

        self.auditoria.registrar(
            usuario, "EDITAR", "viaje", viaje_id,
            datos_anteriores={
                "monto_pagado_cliente": pagado_antes,
                "estado_pago_cliente": viaje.get("estado_pago_cliente"),
            },
            datos_nuevos={
                "monto_pagado_cliente": pagado_total,
                "estado_pago_cliente": estado_pago.value,
                "monto_pago_recibido": monto,
            },
        )

        return {
            "viaje": self.obtener(viaje_id),
            "resumen": {
                "tarifa": tarifa,
                "monto_pagado_antes": pagado_antes,
                "monto_pago_recibido": monto,
                "monto_pagado_total": pagado_total,
                "saldo_pendiente": tarifa - pagado_total,
                "estado_pago": estado_pago.value,
            },
        }

    def eliminar(self, viaje_id: int, usuario: Optional[dict] = None) -> bool:
        viaje = self.obtener(viaje_id)
        if not viaje:
            return False

        if viaje["estado"] != EstadoViaje.PLANIFICADO.value:
            raise ValueError("Solo se pueden eliminar viajes en estado PLANIFICADO")

        if self.pagos_collection.find_one({"viaje_id": viaje_id}, {"_id": 1}):
            raise ValueError("El viaje tiene pagos al chofer registrados")

        self.gastos_collection.delete_many({"viaje_id": viaje_id})
        self.collection.delete_one({"_id": viaje_id})
        self.auditoria.registrar(usuario, "ELIMINAR", "viaje", viaje_id, datos_anteriores=viaje)
        return True

    def estadisticas_mensuales(self, anio: int, mes: int) -> dict:
        if not 1 <= mes <= 12:
            raise ValueError("El mes debe estar entre 1 y 12")
        inicio = datetime(anio, mes, 1)
        fin = datetime(anio + 1, 1, 1) if mes == 12 else datetime(anio, mes + 1, 1)

        viajes = list(self.collection.find(
            {"fecha_salida": {"$gte": inicio, "$lt": fin}},
            {"estado": 1, "tarifa": 1},
        ))
        completados = [v for v in viajes if v.get("estado") == EstadoViaje.COMPLETADO.value]

        return {
            "anio": anio,
            "mes": mes,
            "total_viajes": len(viajes),
            "viajes_completados": len(completados),
            "ingresos_totales": sum((a_decimal(v.get("tarifa")) for v in completados), CERO),
        }

    def iniciar_viajes_programados(self, ahora: Optional[datetime] = None) -> int:
        """Pasa a EN_CURSO los viajes PLANIFICADO cuya salida ya llegó"""
        ahora = ahora or datetime.now()
        pendientes = list(self.collection.find({
            "estado": EstadoViaje.PLANIFICADO.value,
            "fecha_salida": {"$lte": ahora},
        }))

        for viaje in pendientes:
            self.collection.update_one({"_id": viaje["_id"]}, {"$set": {"estado": EstadoViaje.EN_CURSO.value}})
            VehiculoService(self.db).cambiar_estado(viaje["vehiculo_id"], EstadoVehiculo.EN_RUTA)
            self.auditoria.registrar(
                None, "EDITAR", "viaje", viaje["_id"],
                datos_anteriores={"estado": EstadoViaje.PLANIFICADO.value},
                datos_nuevos={"estado": EstadoViaje.EN_CURSO.value, "origen": "programador"},
            )
            logger.info(f"Viaje #{viaje['_id']} iniciado automáticamente")

        return len(pendientes)
