"""
Resumen del tablero principal para un mes.

Separa lo devengado (tarifa de los viajes completados en el mes) de lo
cobrado (viajes completados y PAGADO). La ganancia neta es flujo de caja:
lo cobrado menos viáticos y pagos a choferes efectivamente pagados en el mes.
"""
import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import List, Optional

from flota.core.estados import EstadoPagoChofer, EstadoPagoCliente, EstadoViaje
from flota.core.fechas import rango_mes
from flota.core.finanzas import sumar_montos
from flota.core.montos import CERO, a_decimal
from flota.modules.alertas.service import AlertaService
from flota.modules.dataservice.models.catalogos import EstadoRegistro, EstadoVehiculo
from flota.modules.viajes.service import ViajeService

logger = logging.getLogger(__name__)

TOP = 3
CIEN = Decimal("100")
DECIMA = Decimal("0.1")


class DashboardService:
    def __init__(self, db):
        self.db = db
        self.viajes_collection = db["viajes"]

    def _conteo(self, coleccion: str, activo: Optional[str] = None) -> dict:
        conteo = {"total": self.db[coleccion].count_documents({})}
        if activo:
            conteo["activos"] = self.db[coleccion].count_documents({"estado": activo})
        return conteo

    def obtener_resumen(self, anio: Optional[int] = None, mes: Optional[int] = None, hoy: Optional[date] = None) -> dict:
        hoy = hoy or date.today()
        anio = anio or hoy.year
        mes = mes or hoy.month
        inicio, fin = rango_mes(anio, mes)

        estadisticas = ViajeService(self.db).estadisticas_mensuales(anio, mes)
        completados = list(self.viajes_collection.find({
            "estado": EstadoViaje.COMPLETADO.value,
            "fecha_llegada_real": {"$gte": inicio, "$lte": fin},
        }))

        ids = [v["_id"] for v in completados]
        gastos_viaticos = sumar_montos(list(self.db["gastos_viaje"].find({"viaje_id": {"$in": ids}}, {"monto": 1})))
        pagos_choferes = sumar_montos(list(self.db["pagos_chofer"].find({
            "estado": EstadoPagoChofer.PAGADO.value,
            "fecha_pago_real": {"$gte": inicio, "$lte": fin},
        }, {"monto": 1})))

        devengado = sum((a_decimal(v.get("tarifa")) for v in completados), CERO)
        cobrado = sum(
            (a_decimal(v.get("monto_pagado_cliente")) for v in completados
             if v.get("estado_pago_cliente") == EstadoPagoCliente.PAGADO.value),
            CERO,
        )
        por_cobrar_historico = sum(
            (a_decimal(v.get("tarifa")) - a_decimal(v.get("monto_pagado_cliente"))
             for v in self.viajes_collection.find(
                 {"estado": EstadoViaje.COMPLETADO.value, "estado_pago_cliente": {"$ne": EstadoPagoCliente.PAGADO.value}},
                 {"tarifa": 1, "monto_pagado_cliente": 1},
             )),
            CERO,
        )

        gastos_totales = gastos_viaticos + pagos_choferes
        ganancia_neta = cobrado - gastos_totales
        margen = (ganancia_neta / cobrado * CIEN).quantize(DECIMA) if cobrado > 0 else CERO

        return {
            "periodo": {"desde": inicio, "hasta": fin, "mes": mes, "anio": anio},
            "vehiculos": self._conteo("vehiculos", EstadoVehiculo.ACTIVO.value),
            "choferes": self._conteo("choferes", EstadoRegistro.ACTIVO.value),
            "clientes": self._conteo("clientes", EstadoRegistro.ACTIVO.value),
            "materiales": self._conteo("materiales"),
            "viajes_mes": {
                "total": estadisticas["total_viajes"],
                "completados": estadisticas["viajes_completados"],
                "ingresos_devengados": devengado,
                "ingresos_cobrados": cobrado,
                "por_cobrar_del_mes": devengado - cobrado,
                "por_cobrar_historico": por_cobrar_historico,
                "gastos_viaticos": gastos_viaticos,
                "pagos_choferes": pagos_choferes,
                "gastos_totales": gastos_totales,
                "ganancia_neta": ganancia_neta,
                "margen_rentabilidad": margen,
            },
            "top_vehiculos": self.top_vehiculos(completados),
            "top_clientes": self.top_clientes(completados),
            "resumen_alertas": AlertaService(self.db).obtener_alertas(hoy)["resumen"],
        }

    @staticmethod
    def _agrupar(viajes: List[dict], campo: str) -> dict:
        grupos = defaultdict(lambda: {"cantidad_viajes": 0, "ingresos_generados": CERO})
        for viaje in viajes:
            grupo = grupos[viaje.get(campo)]
            grupo["cantidad_viajes"] += 1
            grupo["ingresos_generados"] += a_decimal(viaje.get("tarifa"))
        return grupos

    def top_vehiculos(self, completados: List[dict]) -> List[dict]:
        """Los vehículos con más viajes completados; a igual cantidad, más ingresos"""
        grupos = self._agrupar(completados, "vehiculo_id")
        orden = sorted(grupos.items(), key=lambda g: (g[1]["cantidad_viajes"], g[1]["ingresos_generados"]), reverse=True)[:TOP]

        vehiculos = {
            v["_id"]: v for v in self.db["vehiculos"].find(
                {"_id": {"$in": [vehiculo_id for vehiculo_id, _ in orden]}},
                {"placa": 1, "marca": 1, "modelo": 1},
            )
        }
        resultado = []
        for vehiculo_id, grupo in orden:
            vehiculo = vehiculos.get(vehiculo_id, {})
            resultado.append({
                "vehiculo_id": vehiculo_id,
                "placa": vehiculo.get("placa") or "N/A",
                "marca": vehiculo.get("marca") or "",
                "modelo": vehiculo.get("modelo") or "",
                **grupo,
            })
        return resultado

    def top_clientes(self, completados: List[dict]) -> List[dict]:
        grupos = self._agrupar(completados, "cliente_id")
        orden = sorted(grupos.items(), key=lambda g: g[1]["ingresos_generados"], reverse=True)[:TOP]

        clientes = {
            c["_id"]: c for c in self.db["clientes"].find(
                {"_id": {"$in": [cliente_id for cliente_id, _ in orden]}},
                {"nombre_razon_social": 1, "identificacion": 1},
            )
        }
        resultado = []
        for cliente_id, grupo in orden:
            cliente = clientes.get(cliente_id, {})
            resultado.append({
                "cliente_id": cliente_id,
                "nombre": cliente.get("nombre_razon_social") or "N/A",
                "identificacion": cliente.get("identificacion") or "",
                **grupo,
            })
        return resultado
