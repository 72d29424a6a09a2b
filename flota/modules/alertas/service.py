"""
Alertas operativas calculadas al vuelo.

No se guarda nada: cada llamada recorre vehículos, choferes, viajes y pagos y
devuelve las listas ordenadas de lo más urgente a lo menos urgente.
"""
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from flota.core.estados import EstadoPagoChofer, EstadoPagoCliente, EstadoViaje
from flota.core.fechas import a_datetime, dias_hasta
from flota.core.montos import CERO, a_decimal
from flota.modules.dataservice.models.catalogos import EstadoRegistro, EstadoVehiculo

logger = logging.getLogger(__name__)

DIAS_ALERTA_DOCUMENTOS = 30
HORAS_VIAJES_PROXIMOS = 48
UMBRAL_SALDO_CHOFER = 500
MAX_PAGOS_VIAJE = 20

DOCUMENTOS_VEHICULO = (
    ("fecha_vencimiento_soat", "SOAT", "SOAT VENCIDO"),
    ("fecha_vencimiento_seguro", "SEGURO", "SEGURO VENCIDO"),
    ("fecha_vencimiento_matricula", "MATRICULA", "MATRÍCULA VENCIDA"),
)


def prioridad_documento(dias: int) -> str:
    if dias <= 7:
        return "ALTA"
    if dias <= 15:
        return "MEDIA"
    return "BAJA"


def _nombre(persona: Optional[dict]) -> str:
    if not persona:
        return ""
    return f"{persona.get('nombres', '')} {persona.get('apellidos', '')}".strip()


class AlertaService:
    def __init__(self, db):
        self.db = db

    def obtener_alertas(self, hoy: Optional[date] = None, ahora: Optional[datetime] = None) -> dict:
        hoy = hoy or date.today()
        ahora = ahora or datetime.now()

        documentos = self.documentos_vehiculos(hoy)
        licencias = self.licencias_choferes(hoy)
        facturas = self.facturas_vencidas(hoy)
        viajes = self.viajes_proximos(ahora)
        saldos = self.choferes_con_saldo()
        mensuales = self.pagos_mensuales_pendientes(hoy)
        pagos_viajes = self.pagos_viajes_pendientes(hoy)

        resumen = {
            "documentos": len(documentos),
            "licencias": len(licencias),
            "facturas": len(facturas),
            "viajes_proximos": len(viajes),
            "choferes_saldo": len(saldos),
            "pagos_choferes": len(mensuales),
            "pagos_viajes": len(pagos_viajes),
        }
        resumen["total"] = sum(resumen.values())

        return {
            "vehiculos_documentos_por_vencer": documentos,
            "licencias_chofer_por_vencer": licencias,
            "facturas_vencidas": facturas,
            "viajes_proximos": viajes,
            "choferes_con_saldo_alto": saldos,
            "pagos_mensuales_pendientes": mensuales,
            "pagos_viajes_pendientes": pagos_viajes,
            "resumen": resumen,
        }

    def documentos_vehiculos(self, hoy: date) -> List[dict]:
        limite = a_datetime(hoy + timedelta(days=DIAS_ALERTA_DOCUMENTOS))
        campos = [campo for campo, _, _ in DOCUMENTOS_VEHICULO]
        vehiculos = self.db["vehiculos"].find(
            {
                "estado": {"$ne": EstadoVehiculo.INACTIVO.value},
                "$or": [{campo: {"$lte": limite}} for campo in campos],
            },
            {"placa": 1, **{campo: 1 for campo in campos}},
        )

        alertas = []
        for vehiculo in vehiculos:
            for campo, tipo, texto_vencido in DOCUMENTOS_VEHICULO:
                vencimiento = vehiculo.get(campo)
                if vencimiento is None or vencimiento > limite:
                    continue
                dias = dias_hasta(vencimiento, hoy)
                vencido = dias < 0
                if vencido:
                    mensaje = f"{texto_vencido} hace {abs(dias)} día(s)"
                elif dias <= 7:
                    mensaje = f"{tipo} vence en {dias} día(s) - URGENTE"
                else:
                    mensaje = f"{tipo} vence en {dias} día(s)"
                alertas.append({
                    "vehiculo_id": vehiculo["_id"],
                    "placa": vehiculo.get("placa"),
                    "tipo_documento": tipo,
                    "fecha_vencimiento": vencimiento.date(),
                    "dias_restantes": dias,
                    "esta_vencido": vencido,
                    "prioridad": prioridad_documento(dias),
                    "mensaje": mensaje,
                })

        return sorted(alertas, key=lambda a: a["dias_restantes"])

    def licencias_choferes(self, hoy: date) -> List[dict]:
        limite = a_datetime(hoy + timedelta(days=DIAS_ALERTA_DOCUMENTOS))
        choferes = self.db["choferes"].find(
            {
                "estado": EstadoRegistro.ACTIVO.value,
                "fecha_vencimiento_licencia": {"$ne": None, "$lte": limite},
            },
            {"nombres": 1, "apellidos": 1, "fecha_vencimiento_licencia": 1},
        )
        alertas = [
            {
                "chofer_id": c["_id"],
                "nombre": _nombre(c),
                "fecha_vencimiento": c["fecha_vencimiento_licencia"].date(),
                "dias_restantes": dias_hasta(c["fecha_vencimiento_licencia"], hoy),
            }
            for c in choferes
        ]
        return sorted(alertas, key=lambda a: a["dias_restantes"])

    def facturas_vencidas(self, hoy: date) -> List[dict]:
        viajes = list(self.db["viajes"].find({
            "fecha_limite_pago": {"$lt": a_datetime(hoy)},
            "estado_pago_cliente": {"$ne": EstadoPagoCliente.PAGADO.value},
            "estado": {"$ne": EstadoViaje.CANCELADO.value},
        }).sort("fecha_limite_pago", 1))

        clientes = {
            c["_id"]: c.get("nombre_razon_social")
            for c in self.db["clientes"].find(
                {"_id": {"$in": list({v["cliente_id"] for v in viajes})}},
                {"nombre_razon_social": 1},
            )
        }

        alertas = []
        for viaje in viajes:
            tarifa = a_decimal(viaje.get("tarifa"))
            pagado = a_decimal(viaje.get("monto_pagado_cliente"))
            alertas.append({
                "viaje_id": viaje["_id"],
                "cliente": clientes.get(viaje["cliente_id"]),
                "ruta": f"{viaje.get('origen')} → {viaje.get('destino')}",
                "tarifa": tarifa,
                "monto_pagado": pagado,
                "saldo_pendiente": tarifa - pagado,
                "fecha_limite_pago": viaje["fecha_limite_pago"].date(),
                "dias_vencido": -dias_hasta(viaje["fecha_limite_pago"], hoy),
            })
        return alertas

    def viajes_proximos(self, ahora: datetime) -> List[dict]:
        hasta = ahora + timedelta(hours=HORAS_VIAJES_PROXIMOS)
        viajes = list(self.db["viajes"].find({
            "estado": EstadoViaje.PLANIFICADO.value,
            "fecha_salida": {"$gte": ahora, "$lte": hasta},
        }).sort("fecha_salida", 1))

        def indice(coleccion: str, campo: str, proyeccion: dict) -> dict:
            ids = list({v[campo] for v in viajes})
            return {d["_id"]: d for d in self.db[coleccion].find({"_id": {"$in": ids}}, proyeccion)}

        vehiculos = indice("vehiculos", "vehiculo_id", {"placa": 1})
        choferes = indice("choferes", "chofer_id", {"nombres": 1, "apellidos": 1})
        clientes = indice("clientes", "cliente_id", {"nombre_razon_social": 1})

        return [
            {
                "viaje_id": v["_id"],
                "placa": vehiculos.get(v["vehiculo_id"], {}).get("placa"),
                "chofer": _nombre(choferes.get(v["chofer_id"])),
                "cliente": clientes.get(v["cliente_id"], {}).get("nombre_razon_social"),
                "origen": v.get("origen"),
                "destino": v.get("destino"),
                "fecha_salida": v["fecha_salida"],
                "horas_restantes": round((v["fecha_salida"] - ahora).total_seconds() / 3600),
            }
            for v in viajes
        ]

    def choferes_con_saldo(self) -> List[dict]:
        alertas = []
        for chofer in self.db["choferes"].find({"estado": EstadoRegistro.ACTIVO.value}, {"nombres": 1, "apellidos": 1}):
            generado = sum(
                (a_decimal(v.get("monto_pago_chofer")) for v in self.db["viajes"].find(
                    {"chofer_id": chofer["_id"], "estado": EstadoViaje.COMPLETADO.value},
                    {"monto_pago_chofer": 1},
                )),
                CERO,
            )
            pagado = sum(
                (a_decimal(p.get("monto")) for p in self.db["pagos_chofer"].find(
                    {"chofer_id": chofer["_id"], "estado": EstadoPagoChofer.PAGADO.value},
                    {"monto": 1},
                )),
                CERO,
            )
            saldo = generado - pagado
            if saldo >= UMBRAL_SALDO_CHOFER:
                alertas.append({
                    "chofer_id": chofer["_id"],
                    "nombre": _nombre(chofer),
                    "total_generado": generado,
                    "total_pagado": pagado,
                    "saldo_pendiente": saldo,
                })
        return sorted(alertas, key=lambda a: a["saldo_pendiente"], reverse=True)

    def pagos_mensuales_pendientes(self, hoy: date) -> List[dict]:
        pagos = list(self.db["pagos_chofer"].find(
            {"estado": EstadoPagoChofer.PENDIENTE.value, "viaje_id": None}
        ).sort("fecha", 1))
        choferes = {
            c["_id"]: c for c in self.db["choferes"].find(
                {"_id": {"$in": list({p["chofer_id"] for p in pagos})}},
                {"nombres": 1, "apellidos": 1},
            )
        }
        return [
            {
                "pago_id": p["_id"],
                "chofer_id": p["chofer_id"],
                "nombre_chofer": _nombre(choferes.get(p["chofer_id"])),
                "monto": a_decimal(p.get("monto")),
                "fecha_pago": p["fecha"],
                "descripcion": p.get("descripcion") or "Pago mensual",
                "dias_para_pago": dias_hasta(p["fecha"], hoy),
            }
            for p in pagos
        ]

    def pagos_viajes_pendientes(self, hoy: date) -> List[dict]:
        pagos = list(self.db["pagos_chofer"].find(
            {"estado": EstadoPagoChofer.PENDIENTE.value, "viaje_id": {"$ne": None}}
        ).sort("fecha", 1).limit(MAX_PAGOS_VIAJE))
        choferes = {
            c["_id"]: c for c in self.db["choferes"].find(
                {"_id": {"$in": list({p["chofer_id"] for p in pagos})}},
                {"nombres": 1, "apellidos": 1},
            )
        }
        viajes = {
            v["_id"]: v for v in self.db["viajes"].find(
                {"_id": {"$in": list({p["viaje_id"] for p in pagos})}},
                {"origen": 1, "destino": 1, "fecha_salida": 1},
            )
        }

        alertas = []
        for pago in pagos:
            viaje = viajes.get(pago["viaje_id"])
            fecha_viaje = viaje["fecha_salida"] if viaje else pago["fecha"]
            alertas.append({
                "pago_id": pago["_id"],
                "viaje_id": pago["viaje_id"],
                "chofer": _nombre(choferes.get(pago["chofer_id"])),
                "ruta": f"{viaje.get('origen')} → {viaje.get('destino')}" if viaje else "N/A",
                "monto": a_decimal(pago.get("monto")),
                "fecha_viaje": fecha_viaje,
                "dias_pendiente": -dias_hasta(fecha_viaje, hoy),
            })
        return alertas
