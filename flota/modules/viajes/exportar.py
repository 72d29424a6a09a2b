import logging
from io import BytesIO
from typing import List

import pandas as pd

from flota.core.montos import redondear

logger = logging.getLogger(__name__)

COLUMNAS = [
    "ID", "Estado", "Origen", "Destino", "Placa", "Chofer", "Cliente",
    "Fecha Salida", "Fecha Llegada Real", "Km Reales", "Tarifa",
    "Pagado Cliente", "Estado Cobro", "Pago Chofer", "Pagado Chofer",
]


def _fecha(valor) -> str:
    return valor.strftime("%Y-%m-%d %H:%M") if valor else ""


def exportar_viajes_excel(viajes: List[dict]) -> BytesIO:
    try:
        filas = []
        for viaje in viajes:
            chofer = viaje.get("chofer") or {}
            filas.append({
                "ID": viaje["id"],
                "Estado": viaje.get("estado", ""),
                "Origen": viaje.get("origen", ""),
                "Destino": viaje.get("destino", ""),
                "Placa": (viaje.get("vehiculo") or {}).get("placa", ""),
                "Chofer": f"{chofer.get('nombres', '')} {chofer.get('apellidos', '')}".strip(),
                "Cliente": (viaje.get("cliente") or {}).get("nombre_razon_social", ""),
                "Fecha Salida": _fecha(viaje.get("fecha_salida")),
                "Fecha Llegada Real": _fecha(viaje.get("fecha_llegada_real")),
                "Km Reales": viaje.get("kilometros_reales"),
                "Tarifa": float(redondear(viaje.get("tarifa"))),
                "Pagado Cliente": float(redondear(viaje.get("monto_pagado_cliente"))),
                "Estado Cobro": viaje.get("estado_pago_cliente", ""),
                "Pago Chofer": float(redondear(viaje.get("monto_pago_chofer"))),
                "Pagado Chofer": float(redondear(viaje.get("pagado_chofer"))),
            })

        df = pd.DataFrame(filas, columns=COLUMNAS)

        output = BytesIO()
        with pd.ExcelWriter(output, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Viajes')

        output.seek(0)
        return output

    except Exception as e:
        logger.error(f"Error al exportar viajes a Excel: {str(e)}")
        raise
