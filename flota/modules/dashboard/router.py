from typing import Optional
from fastapi import APIRouter, HTTPException, Query

from flota.core.database import get_database
from flota.core.respuestas import respuesta
from flota.modules.dashboard.service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def obtener_resumen_dashboard(
    anio: Optional[int] = Query(None, ge=2000, le=2100, description="Por defecto, el año actual"),
    mes: Optional[int] = Query(None, ge=1, le=12, description="Por defecto, el mes actual"),
):
    """
    Métricas del mes: catálogos, viajes, ingresos devengados y cobrados,
    gastos, ganancia neta, top 3 de vehículos y clientes, y conteo de alertas.
    """
    service = DashboardService(get_database())
    try:
        return respuesta(service.obtener_resumen(anio, mes))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
