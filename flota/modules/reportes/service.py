"""
Reportes financieros agregados en el servidor.

La cartera agrupa por cliente los viajes con cobro pendiente y reparte la
deuda en tramos de antigüedad. Los reportes general, mensual y por vehículo
cuentan solo viajes COMPLETADO y cobrados (PAGADO), y usan la misma
aritmética que el detalle de viaje para gastos y pagos al chofer. Los
reportes por entidad se exportan como CSV de dos columnas (Concepto, Valor).
"""
import logging
from collections import Counter
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO, StringIO
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from flota.core.estados import EstadoPagoCliente, EstadoViaje
from flota.core.finanzas import calcular_resumen_economico, pagos_chofer_pagados, sumar_montos
from flota.core.fechas import a_datetime, rango_mes
from flota.core.montos import CERO, a_decimal, montos_desde_mongo, redondear
from flota.modules.pagos_chofer.service import PagoChoferService

logger = logging.getLogger(__name__)

TRAMOS = ("por_vencer", "vencido_1_30", "vencido_31_60", "vencido_61_90", "vencido_90_mas")

COLUMNAS_CARTERA = {
    "cliente": "Cliente",
    "viajes_count": "Viajes",
    "total_deuda": "Total Deuda",
    "por_vencer": "Por Vencer",
    "vencido_1_30": "Vencido 1-30",
    "vencido_31_60": "Vencido 31-60",
    "vencido_61_90": "Vencido 61-90",
    "vencido_90_mas": "Vencido +90",
}


def tramo_por_dias(dias_vencido: int) -> str:
    if dias_vencido <= 0:
        return "por_vencer"
    if dias_vencido <= 30:
        return "vencido_1_30"
    if dias_vencido <= 60:
        return "vencido_31_60"
    if dias_vencido <= 90:
        return "vencido_61_90"
    return "vencido_90_mas"


class ReporteService:
    def __init__(self, db):
        self.db = db
        self.viajes_collection = db["viajes"]

    def cartera(self, hoy: Optional[date] = None) -> List[dict]:
        hoy = hoy or date.today()
        viajes = self.viajes_collection.find({
            "estado_pago_cliente": {"$in": [EstadoPagoCliente.PENDIENTE.value, EstadoPagoCliente.PARCIAL.value]},
            "estado": {"$ne": EstadoViaje.CANCELADO.value},
        })

        por_cliente: Dict[int, dict] = {}
        for viaje in viajes:
            cliente_id = viaje["cliente_id"]
            if cliente_id not in por_cliente:
                por_cliente[cliente_id] = {
                    "cliente_id": cliente_id,
                    "cliente": None,
                    "total_deuda": CERO,
                    "viajes_count": 0,
                    **{tramo: CERO for tramo in TRAMOS},
                }
            fila = por_cliente[cliente_id]

            deuda = a_decimal(viaje.get("tarifa")) - a_decimal(viaje.get("monto_pagado_cliente"))
            vencimiento = viaje.get("fecha_limite_pago") or viaje["fecha_salida"]
            dias_vencido = (hoy - vencimiento.date()).days

            fila["total_deuda"] += deuda
            fila["viajes_count"] += 1
            fila[tramo_por_dias(dias_vencido)] += deuda

        clientes = {
            c["_id"]: c.get("nombre_razon_social")
            for c in self.db["clientes"].find({"_id": {"$in": list(por_cliente)}}, {"nombre_razon_social": 1})
        }
        for cliente_id, fila in por_cliente.items():
            fila["cliente"] = clientes.get(cliente_id) or f"Cliente #{cliente_id}"

        return sorted(por_cliente.values(), key=lambda f: f["total_deuda"], reverse=True)

    def exportar_cartera(self, formato: str = "csv") -> BytesIO:
        """CSV (o Excel) de la cartera con fila final de TOTALES"""
        try:
            filas = self.cartera()
            df = pd.DataFrame(
                [{k: f[k] for k in COLUMNAS_CARTERA} for f in filas],
                columns=list(COLUMNAS_CARTERA),
            )
            for columna in ("total_deuda",) + TRAMOS:
                df[columna] = df[columna].map(lambda v: float(redondear(v)))

            totales = {"cliente": "TOTALES", "viajes_count": int(df["viajes_count"].sum())}
            for columna in ("total_deuda",) + TRAMOS:
                totales[columna] = float(sum((redondear(f[columna]) for f in filas), CERO))
            df = pd.concat([df, pd.DataFrame([totales])], ignore_index=True)
            df = df.rename(columns=COLUMNAS_CARTERA)

            output = BytesIO()
            if formato == "xlsx":
                with pd.ExcelWriter(output, engine='openpyxl') as writer:
                    df.to_excel(writer, index=False, sheet_name='Cartera')
            else:
                texto = StringIO()
                df.to_csv(texto, index=False, float_format="%.2f")
                output.write(texto.getvalue().encode("utf-8-sig"))

            output.seek(0)
            return output

        except Exception as e:
            logger.error(f"Error al exportar cartera: {str(e)}")
            raise

    def _totales_periodo(self, desde: datetime, hasta: datetime, filtro: Optional[dict] = None) -> dict:
        viajes = [
            montos_desde_mongo(v, ("tarifa", "monto_pago_chofer"))
            for v in self.viajes_collection.find({
                **(filtro or {}),
                "estado": EstadoViaje.COMPLETADO.value,
                "estado_pago_cliente": EstadoPagoCliente.PAGADO.value,
                "fecha_llegada_real": {"$gte": desde, "$lte": hasta},
            })
        ]
        ids = [v["_id"] for v in viajes]
        gastos = list(self.db["gastos_viaje"].find({"viaje_id": {"$in": ids}}, {"viaje_id": 1, "monto": 1}))
        pagos = list(self.db["pagos_chofer"].find({"viaje_id": {"$in": ids}}, {"viaje_id": 1, "monto": 1, "estado": 1}))

        ingresos = viaticos = pagos_choferes = CERO
        for viaje in viajes:
            viaje["id"] = viaje["_id"]
            propios = [g for g in gastos if g["viaje_id"] == viaje["id"]]
            resumen = calcular_resumen_economico(viaje, propios, pagos)
            ingresos += resumen.ingreso
            viaticos += sumar_montos(propios)
            pagos_choferes += sumar_montos(pagos_chofer_pagados(pagos, viaje["id"]))

        total_gastos = viaticos + pagos_choferes
        return {
            "viajes_completados": len(viajes),
            "ingresos": ingresos,
            "gastos": {
                "viaticos": viaticos,
                "pagos_choferes": pagos_choferes,
                "total": total_gastos,
            },
            "ganancia_neta": ingresos - total_gastos,
        }

    @staticmethod
    def _rango(fecha_desde: datetime, fecha_hasta: datetime) -> Tuple[datetime, datetime]:
        desde = a_datetime(fecha_desde)
        hasta = a_datetime(fecha_hasta)
        if desde > hasta:
            raise ValueError("La fecha desde debe ser anterior a la fecha hasta")
        return desde, hasta

    def general(self, fecha_desde: datetime, fecha_hasta: datetime) -> dict:
        desde, hasta = self._rango(fecha_desde, fecha_hasta)
        return {"periodo": {"desde": desde, "hasta": hasta}, **self._totales_periodo(desde, hasta)}

    def mensual(self, anio: int, meses: Optional[List[int]] = None) -> List[dict]:
        resultados = []
        for mes in meses or range(1, 13):
            totales = self._totales_periodo(*rango_mes(anio, mes))
            resultados.append({
                "anio": anio,
                "mes": mes,
                "ingresos": totales["ingresos"],
                "gastos": totales["gastos"]["total"],
                "ganancia": totales["ganancia_neta"],
                "detalles": {
                    "viaticos": totales["gastos"]["viaticos"],
                    "choferes": totales["gastos"]["pagos_choferes"],
                },
            })
        return resultados

    # ------------------------------------------------------------ por entidad

    def por_vehiculo(self, vehiculo_id: int, fecha_desde: datetime, fecha_hasta: datetime) -> Optional[dict]:
        vehiculo = self.db["vehiculos"].find_one({"_id": vehiculo_id}, {"placa": 1, "marca": 1, "modelo": 1})
        if not vehiculo:
            return None
        desde, hasta = self._rango(fecha_desde, fecha_hasta)

        vehiculo["id"] = vehiculo.pop("_id")
        return {
            "vehiculo": vehiculo,
            "periodo": {"desde": desde, "hasta": hasta},
            **self._totales_periodo(desde, hasta, {"vehiculo_id": vehiculo_id}),
        }

    def por_chofer(self, chofer_id: int, fecha_desde: datetime, fecha_hasta: datetime) -> Optional[dict]:
        """Viajes completados en el periodo y balance de pagos según la modalidad del chofer"""
        chofer = self.db["choferes"].find_one({"_id": chofer_id}, {"nombres": 1, "apellidos": 1, "modalidad_pago": 1})
        if not chofer:
            return None
        desde, hasta = self._rango(fecha_desde, fecha_hasta)

        viajes_realizados = self.viajes_collection.count_documents({
            "chofer_id": chofer_id,
            "estado": EstadoViaje.COMPLETADO.value,
            "fecha_llegada_real": {"$gte": desde, "$lte": hasta},
        })
        balance = PagoChoferService(self.db).resumen_chofer(chofer_id, desde, hasta)

        chofer["id"] = chofer.pop("_id")
        return {
            "chofer": chofer,
            "periodo": {"desde": desde, "hasta": hasta},
            "viajes_realizados": viajes_realizados,
            "ingresos_generados": balance["total_generado"],
            "pagos_realizados": balance["total_pagado"],
            "saldo_pendiente": balance["saldo_pendiente"],
        }

    def por_cliente(self, cliente_id: int, fecha_desde: datetime, fecha_hasta: datetime) -> Optional[dict]:
        cliente = self.db["clientes"].find_one({"_id": cliente_id}, {"nombre_razon_social": 1, "identificacion": 1})
        if not cliente:
            return None
        desde, hasta = self._rango(fecha_desde, fecha_hasta)

        viajes = list(self.viajes_collection.find({
            "cliente_id": cliente_id,
            "estado": EstadoViaje.COMPLETADO.value,
            "estado_pago_cliente": EstadoPagoCliente.PAGADO.value,
            "fecha_llegada_real": {"$gte": desde, "$lte": hasta},
        }, {"tarifa": 1, "material_id": 1}))

        frecuencia = Counter(v.get("material_id") for v in viajes if v.get("material_id") is not None)
        material_frecuente = None
        if frecuencia:
            material_id = frecuencia.most_common(1)[0][0]
            material = self.db["materiales"].find_one({"_id": material_id}, {"nombre": 1}) or {}
            material_frecuente = material.get("nombre")

        cliente["id"] = cliente.pop("_id")
        return {
            "cliente": cliente,
            "periodo": {"desde": desde, "hasta": hasta},
            "viajes_realizados": len(viajes),
            "ingresos_totales": sum((a_decimal(v.get("tarifa")) for v in viajes), CERO),
            "material_mas_frecuente": material_frecuente,
        }

    @staticmethod
    def conceptos(tipo: str, reporte: dict) -> List[Tuple[str, Any]]:
        periodo = [("Periodo Desde", reporte["periodo"]["desde"].date()), ("Periodo Hasta", reporte["periodo"]["hasta"].date())]
        if tipo == "vehiculos":
            return [("Vehículo", reporte["vehiculo"].get("placa"))] + periodo + [
                ("Viajes Completados", reporte["viajes_completados"]),
                ("Ingresos Viajes", reporte["ingresos"]),
                ("Gastos Viáticos", reporte["gastos"]["viaticos"]),
                ("Pagos Choferes", reporte["gastos"]["pagos_choferes"]),
                ("Gastos Totales", reporte["gastos"]["total"]),
                ("Ganancia Neta", reporte["ganancia_neta"]),
            ]
        if tipo == "choferes":
            chofer = reporte["chofer"]
            return [("Chofer", f"{chofer.get('nombres', '')} {chofer.get('apellidos', '')}".strip())] + periodo + [
                ("Viajes Realizados", reporte["viajes_realizados"]),
                ("Ingresos Generados", reporte["ingresos_generados"]),
                ("Pagos Realizados", reporte["pagos_realizados"]),
                ("Saldo Pendiente", reporte["saldo_pendiente"]),
            ]
        return [("Cliente", reporte["cliente"].get("nombre_razon_social"))] + periodo + [
            ("Viajes Realizados", reporte["viajes_realizados"]),
            ("Ingresos Totales", reporte["ingresos_totales"]),
            ("Material Frecuente", reporte["material_mas_frecuente"] or ""),
        ]

    def exportar_conceptos(self, filas: List[Tuple[str, Any]]) -> BytesIO:
        """CSV Concepto,Valor; montos a dos decimales"""
        df = pd.DataFrame(
            [(concepto, redondear(valor) if isinstance(valor, Decimal) else valor) for concepto, valor in filas],
            columns=["Concepto", "Valor"],
        )
        output = BytesIO(df.to_csv(index=False).encode("utf-8-sig"))
        output.seek(0)
        return output
