import csv
from datetime import date
from typing import List, Optional

import pandas as pd

from flota.core.montos import CERO, redondear

COLUMNAS = {
    "cliente": "Cliente",
    "viajes_count": "Viajes",
    "total_deuda": "Total Deuda",
    "por_vencer": "Por Vencer",
    "vencido_1_30": "Vencido 1-30",
    "vencido_31_60": "Vencido 31-60",
    "vencido_61_90": "Vencido 61-90",
    "vencido_90_mas": "Vencido +90",
}
COLUMNAS_MONTO = ("total_deuda", "por_vencer", "vencido_1_30", "vencido_31_60", "vencido_61_90", "vencido_90_mas")


def cartera_csv(filas: List[dict]) -> str:
    """
    CSV de la cartera tal como llega de GET /reportes/cartera.

    Nombres de cliente entre comillas, montos numéricos a dos decimales y una
    última fila TOTALES con la suma de cada columna.
    """
    registros = []
    for fila in filas:
        registro = {"cliente": str(fila.get("cliente") or ""), "viajes_count": int(fila.get("viajes_count") or 0)}
        for columna in COLUMNAS_MONTO:
            registro[columna] = float(redondear(fila.get(columna)))
        registros.append(registro)

    # TOTALES = suma de los montos ya redondeados de cada fila
    totales = {"cliente": "TOTALES", "viajes_count": sum(r["viajes_count"] for r in registros)}
    for columna in COLUMNAS_MONTO:
        totales[columna] = float(sum((redondear(f.get(columna)) for f in filas), CERO))

    df = pd.DataFrame(registros + [totales], columns=list(COLUMNAS))
    df = df.rename(columns=COLUMNAS)
    return df.to_csv(index=False, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")


def nombre_archivo(hoy: Optional[date] = None) -> str:
    return f"reporte_cartera_{(hoy or date.today()).isoformat()}.csv"


def guardar_cartera_csv(filas: List[dict], ruta: str) -> str:
    # utf-8-sig para que Excel reconozca los acentos
    with open(ruta, "w", encoding="utf-8-sig", newline="") as f:
        f.write(cartera_csv(filas))
    return ruta
