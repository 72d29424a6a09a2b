import logging
from datetime import datetime
from typing import Any, Dict, Optional

from flota.core.estados import EstadoPagoChofer, EstadoViaje, ModalidadPago
from flota.core.fechas import a_datetime
from flota.core.montos import CERO, a_decimal, a_mongo, montos_a_mongo, montos_desde_mongo
from flota.core.secuencias import siguiente_id
from flota.modules.auditoria.service import AuditoriaService
from flota.modules.dataservice.services.base_service import sin_enums
from flota.modules.pagos_chofer.model import PagoChofer, TOLERANCIA_PACTADO, TOLERANCIA_PARCIAL

logger = logging.getLogger(__name__)


class PagoChoferService:
    def __init__(self, db):
        self.db = db
        self.collection = db["pagos_chofer"]
        self.auditoria = AuditoriaService(db)

    def _prepare_response(self, pago: Optional[dict]) -> Optional[dict]:
        if not pago:
            return None
        pago["id"] = pago.pop("_id")
        return montos_desde_mongo(pago, ("monto",))

    def _nuevo_id(self) -> int:
        return siguiente_id(
            counters_collection=self.db["counters"],
            target_collection=self.collection,
            sequence_name="pagos_chofer",
        )

    def listar(
        self,
        chofer_id: Optional[int] = None,
        viaje_id: Optional[int] = None,
        estado: Optional[str] = None,
        fecha_desde: Optional[datetime] = None,
        fecha_hasta: Optional[datetime] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if chofer_id is not None:
            query["chofer_id"] = chofer_id
        if viaje_id is not None:
            query["viaje_id"] = viaje_id
        if estado:
            query["estado"] = estado
        if fecha_desde or fecha_hasta:
            query["fecha"] = {}
            if fecha_desde:
                query["fecha"]["$gte"] = a_datetime(fecha_desde)
            if fecha_hasta:
                query["fecha"]["$lte"] = a_datetime(fecha_hasta)

        total = self.collection.count_documents(query)
        pagos = [
            self._prepare_response(p) for p in
            self.collection.find(query).sort("fecha", -1).skip((page - 1) * limit).limit(limit)
        ]

        choferes = {
            c["_id"]: c for c in self.db["choferes"].find(
                {"_id": {"$in": list({p["chofer_id"] for p in pagos})}},
                {"nombres": 1, "apellidos": 1, "documento": 1},
            )
        }
        for pago in pagos:
            chofer = choferes.get(pago["chofer_id"])
            if chofer:
                pago["chofer"] = {k: v for k, v in chofer.items() if k != "_id"}

        return {"items": pagos, "total": total}

    def obtener(self, pago_id: int) -> Optional[dict]:
        return self._prepare_response(self.collection.find_one({"_id": pago_id}))

    def crear(self, datos: dict, comprobante: Optional[dict] = None, usuario: Optional[dict] = None) -> dict:
        try:
            if not self.db["choferes"].find_one({"_id": datos["chofer_id"]}, {"_id": 1}):
                raise ValueError("Chofer no encontrado")

            monto = a_decimal(datos.get("monto"))
            if monto <= CERO:
                raise ValueError("El monto debe ser mayor a 0")

            viaje_id = datos.get("viaje_id")
            if viaje_id is not None:
                viaje = self.db["viajes"].find_one({"_id": viaje_id})
                if not viaje:
                    raise ValueError("Viaje asociado no encontrado")
                if viaje.get("chofer_id") != datos["chofer_id"]:
                    raise ValueError("El viaje asociado pertenece a otro chofer")

                pactado = a_decimal(viaje.get("monto_pago_chofer"))
                previos = sum(
                    (a_decimal(p.get("monto")) for p in self.collection.find({"viaje_id": viaje_id}, {"monto": 1})),
                    CERO,
                )
                if previos + monto > pactado + TOLERANCIA_PACTADO:
                    raise ValueError(
                        f"El pago excede el monto pactado para este viaje. "
                        f"Pactado: ${pactado} Pagado prev: ${previos} "
                        f"Intento actual: ${monto} Saldo restante: ${pactado - previos:.2f}"
                    )

            datos = {k: v for k, v in datos.items() if v is not None}
            if "fecha" in datos:
                datos["fecha"] = a_datetime(datos["fecha"])

            pago = sin_enums(PagoChofer(comprobante=comprobante, **datos).model_dump())
            pago["_id"] = self._nuevo_id()
            self.collection.insert_one(montos_a_mongo(pago, ("monto",)))

            creado = self.obtener(pago["_id"])
            self.auditoria.registrar(usuario, "CREAR", "pago_chofer", creado["id"], datos_nuevos=creado)
            return creado

        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error al crear pago de chofer: {str(e)}")
            raise

    def marcar_pagado(
        self,
        pago_id: int,
        usuario: Optional[dict] = None,
        monto: Any = None,
        fecha: Optional[datetime] = None,
        metodo_pago: Optional[str] = None,
        descripcion: Optional[str] = None,
        comprobante: Optional[dict] = None,
    ) -> Optional[dict]:
        pago = self.obtener(pago_id)
        if not pago:
            return None

        if pago["estado"] == EstadoPagoChofer.PAGADO.value:
            raise ValueError("Este pago ya fue marcado como pagado")

        pendiente = a_decimal(pago["monto"])
        a_pagar = a_decimal(monto) if monto is not None else pendiente

        if a_pagar > pendiente + TOLERANCIA_PARCIAL:
            raise ValueError(f"El monto a pagar (${a_pagar}) excede el pendiente (${pendiente})")
        if a_pagar <= CERO:
            raise ValueError("El monto a pagar debe ser mayor a 0")

        es_parcial = (pendiente - a_pagar) > TOLERANCIA_PARCIAL
        cambios: Dict[str, Any] = {
            "estado": EstadoPagoChofer.PAGADO.value,
            "fecha_pago_real": a_datetime(fecha) or datetime.now(),
            "metodo_pago": getattr(metodo_pago, "value", metodo_pago) or pago.get("metodo_pago"),
        }
        if descripcion:
            cambios["descripcion"] = descripcion
        if comprobante:
            cambios["comprobante"] = comprobante

        if es_parcial:
            cambios["monto"] = a_mongo(a_pagar)
            self.collection.update_one({"_id": pago_id}, {"$set": cambios})
            saldo_id = self._nuevo_id()
            self.collection.insert_one({
                "_id": saldo_id,
                "chofer_id": pago["chofer_id"],
                "viaje_id": pago.get("viaje_id"),
                "monto": a_mongo(pendiente - a_pagar),
                "fecha": pago.get("fecha"),
                "metodo_pago": pago.get("metodo_pago"),
                "descripcion": f"Saldo restante de pago #{pago_id}",
                "estado": EstadoPagoChofer.PENDIENTE.value,
                "fecha_pago_real": None,
                "comprobante": None,
                "fecha_registro": datetime.now(),
            })
            logger.info(f"Pago #{pago_id} pagado parcialmente; saldo en pago #{saldo_id}")
        else:
            self.collection.update_one({"_id": pago_id}, {"$set": cambios})

        self.auditoria.registrar(
            usuario, "EDITAR", "pago_chofer", pago_id,
            datos_anteriores={"estado": EstadoPagoChofer.PENDIENTE.value, "monto": pendiente},
            datos_nuevos={
                "estado": EstadoPagoChofer.PAGADO.value,
                "monto_pagado": a_pagar,
                "es_parcial": es_parcial,
                "fecha_pago_real": cambios["fecha_pago_real"],
            },
        )
        return self.obtener(pago_id)

    def eliminar(self, pago_id: int, usuario: Optional[dict] = None) -> bool:
        pago = self.obtener(pago_id)
        if not pago:
            return False
        if pago["estado"] == EstadoPagoChofer.PAGADO.value:
            raise ValueError("No se puede eliminar un pago ya realizado")

        self.collection.delete_one({"_id": pago_id})
        self.auditoria.registrar(usuario, "ELIMINAR", "pago_chofer", pago_id, datos_anteriores=pago)
        return True

    def resumen_chofer(
        self,
        chofer_id: int,
        fecha_desde: Optional[datetime] = None,
        fecha_hasta: Optional[datetime] = None,
    ) -> Optional[dict]:
        chofer = self.db["choferes"].find_one({"_id": chofer_id})
        if not chofer:
            return None

        def rango(campo: str) -> dict:
            if not (fecha_desde or fecha_hasta):
                return {}
            filtro = {}
            if fecha_desde:
                filtro["$gte"] = a_datetime(fecha_desde)
            if fecha_hasta:
                filtro["$lte"] = a_datetime(fecha_hasta)
            return {campo: filtro}

        modalidad = chofer.get("modalidad_pago", ModalidadPago.POR_VIAJE.value)

        if modalidad == ModalidadPago.POR_VIAJE.value:
            viajes = self.db["viajes"].find(
                {"chofer_id": chofer_id, "estado": EstadoViaje.COMPLETADO.value, **rango("fecha_llegada_real")},
                {"monto_pago_chofer": 1},
            )
            generado = sum((a_decimal(v.get("monto_pago_chofer")) for v in viajes), CERO)
            pagos = self.collection.find(
                {"chofer_id": chofer_id, "estado": EstadoPagoChofer.PAGADO.value, **rango("fecha")},
                {"monto": 1},
            )
            pagado = sum((a_decimal(p.get("monto")) for p in pagos), CERO)
            pendiente = generado - pagado
        else:
            pagos = list(self.collection.find(
                {"chofer_id": chofer_id, "viaje_id": None, **rango("fecha")},
                {"monto": 1, "estado": 1},
            ))
            generado = sum((a_decimal(p.get("monto")) for p in pagos), CERO)
            pendiente = sum(
                (a_decimal(p.get("monto")) for p in pagos if p.get("estado") == EstadoPagoChofer.PENDIENTE.value),
                CERO,
            )
            pagado = generado - pendiente

        return {
            "chofer_id": chofer_id,
            "modalidad_pago": modalidad,
            "total_generado": generado,
            "total_pagado": pagado,
            "saldo_pendiente": pendiente,
            "sueldo_mensual": a_decimal(chofer.get("sueldo_mensual")) if modalidad == ModalidadPago.MENSUAL.value else None,
        }
