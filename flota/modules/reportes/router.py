import logging
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import StreamingResponse

from flota.core.database import get_database
from flota.core.respuestas import respuesta
from flota.modules.reportes.service import ReporteService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reportes", tags=["Reportes"])

TIPOS_EXPORTACION = {
    "csv": ("text/csv; charset=utf-8", "csv"),
    "xlsx": ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
}


@router.get("/cartera")
def reporte_cartera():
    service = ReporteService(get_database())
    return respuesta(service.cartera())


@router.get("/cartera/exportar")
def exportar_cartera(formato: str = Query("csv", pattern="^(csv|xlsx)$")):
    service = ReporteService(get_database())
    archivo = service.exportar_cartera(formato)
    media_type, extension = TIPOS_EXPORTACION[formato]

    return StreamingResponse(
        archivo,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename=cartera_{date.today():%Y%m%d}.{extension}"}
    )


@router.get("/general")
def reporte_general(
    fecha_desde: datetime = Query(..., description="Inicio del periodo"),
    fecha_hasta: datetime = Query(..., description="Fin del periodo"),
):
    service = ReporteService(get_database())
    try:
        return respuesta(service.general(fecha_desde, fecha_hasta))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/mensual")
def reporte_mensual(
    anio: Optional[int] = Query(None, ge=2000, le=2100),
    meses: Optional[List[int]] = Query(None, description="Meses a incluir (1-12)"),
):
    service = ReporteService(get_database())
    try:
        return respuesta(service.mensual(anio or date.today().year, meses))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


REPORTES_POR_ENTIDAD = {
    "vehiculos": ("por_vehiculo", "Vehículo no encontrado", "reporte_vehiculo"),
    "choferes": ("por_chofer", "Chofer no encontrado", "reporte_chofer"),
    "clientes": ("por_cliente", "Cliente no encontrado", "reporte_cliente"),
}


def _reporte_entidad(tipo: str, entidad_id: int, fecha_desde: datetime, fecha_hasta: datetime) -> dict:
    metodo, no_encontrado, _ = REPORTES_POR_ENTIDAD[tipo]
    service = ReporteService(get_database())
    try:
        reporte = getattr(service, metodo)(entidad_id, fecha_desde, fecha_hasta)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if reporte is None:
        raise HTTPException(status_code=404, detail=no_encontrado)
    return reporte


def _exportar_entidad(tipo: str, entidad_id: int, fecha_desde: datetime, fecha_hasta: datetime) -> StreamingResponse:
    reporte = _reporte_entidad(tipo, entidad_id, fecha_desde, fecha_hasta)
    service = ReporteService(get_database())
    archivo = service.exportar_conceptos(service.conceptos(tipo, reporte))
    prefijo = REPORTES_POR_ENTIDAD[tipo][2]

    return StreamingResponse(
        archivo,
        media_type=TIPOS_EXPORTACION["csv"][0],
        headers={"Content-Disposition": f"attachment; filename={prefijo}_{entidad_id}.csv"}
    )


@router.get("/vehiculos")
def reporte_vehiculo(
    vehiculo_id: int = Query(...),
    fecha_desde: datetime = Query(...),
    fecha_hasta: datetime = Query(...),
):
    return respuesta(_reporte_entidad("vehiculos", vehiculo_id, fecha_desde, fecha_hasta))


@router.get("/vehiculos/exportar")
def exportar_reporte_vehiculo(
    vehiculo_id: int = Query(...),
    fecha_desde: datetime = Query(...),
    fecha_hasta: datetime = Query(...),
):
    return _exportar_entidad("vehiculos", vehiculo_id, fecha_desde, fecha_hasta)


@router.get("/choferes")
def reporte_chofer(
    chofer_id: int = Query(...),
    fecha_desde: datetime = Query(...),
    fecha_hasta: datetime = Query(...),
):
    return respuesta(_reporte_entidad("choferes", chofer_id, fecha_desde, fecha_hasta))


@router.get("/choferes/exportar")
def exportar_reporte_chofer(
    chofer_id: int = Query(...),
    fecha_desde: datetime = Query(...),
    fecha_hasta: datetime = Query(...),
):
    return _exportar_entidad("choferes", chofer_id, fecha_desde, fecha_hasta)


@router.get("/clientes")
def reporte_cliente(
    cliente_id: int = Query(...),
    fecha_desde: datetime = Query(...),
    fecha_hasta: datetime = Query(...),
):
    return respuesta(_reporte_entidad("clientes", cliente_id, fecha_desde, fecha_hasta))


@router.get("/clientes/exportar")
def exportar_reporte_cliente(
    cliente_id: int = Query(...),
    fecha_desde: datetime = Query(...),
    fecha_hasta: datetime = Query(...),
):
    return _exportar_entidad("clientes", cliente_id, fecha_desde, fecha_hasta)
