import logging
from datetime import date, datetime
from io import BytesIO
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from flota.core.database import get_database
from flota.core.estados import EstadoPagoCliente, EstadoViaje
from flota.core.respuestas import respuesta, respuesta_paginada
from flota.modules.auth.utils.dependencies import puede_escribir
from flota.modules.viajes.exportar import exportar_viajes_excel
from flota.modules.viajes.schema import CambioEstado, PagoCliente, ViajeCreate, ViajeFilter, ViajeUpdate
from flota.modules.viajes.service import ViajeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/viajes", tags=["Viajes"])


def _filtros(
    estado: Optional[EstadoViaje] = Query(None, description="Filtrar por estado"),
    estado_pago_cliente: Optional[EstadoPagoCliente] = Query(None, description="PENDIENTE, PARCIAL o PAGADO"),
    vehiculo_id: Optional[int] = Query(None),
    chofer_id: Optional[int] = Query(None),
    cliente_id: Optional[int] = Query(None),
    fecha_desde: Optional[datetime] = Query(None, description="Salida desde"),
    fecha_hasta: Optional[datetime] = Query(None, description="Salida hasta"),
) -> ViajeFilter:
    return ViajeFilter(
        estado=estado,
        estado_pago_cliente=estado_pago_cliente.value if estado_pago_cliente else None,
        vehiculo_id=vehiculo_id,
        chofer_id=chofer_id,
        cliente_id=cliente_id,
        fecha_desde=fecha_desde,
        fecha_hasta=fecha_hasta,
    )


@router.get("")
def listar_viajes(
    filtros: ViajeFilter = Depends(_filtros),
    page: int = Query(default=1, ge=1, description="Número de página"),
    limit: int = Query(default=20, ge=1, le=100, description="Elementos por página"),
):
    service = ViajeService(get_database())
    resultado = service.listar(filtros, page, limit)
    return respuesta_paginada(resultado["items"], resultado["total"], page, limit)


@router.get("/estadisticas/mensuales")
def estadisticas_mensuales(
    anio: Optional[int] = Query(default=None, ge=2000, le=2100),
    mes: Optional[int] = Query(default=None, ge=1, le=12),
):
    hoy = date.today()
    service = ViajeService(get_database())
    return respuesta(service.estadisticas_mensuales(anio or hoy.year, mes or hoy.month))


@router.get("/exportar/excel")
def exportar_viajes(filtros: ViajeFilter = Depends(_filtros)):
    service = ViajeService(get_database())
    viajes = service.listar(filtros, page=1, limit=10000)["items"]
    archivo: BytesIO = exportar_viajes_excel(viajes)

    return StreamingResponse(
        archivo,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=viajes.xlsx"}
    )


@router.get("/{viaje_id}")
def obtener_viaje(viaje_id: int):
    service = ViajeService(get_database())
    detalle = service.obtener_detalle(viaje_id)
    if not detalle:
        raise HTTPException(status_code=404, detail="Viaje no encontrado")
    return respuesta(detalle)


@router.post("", status_code=201)
def crear_viaje(viaje: ViajeCreate, current_user: dict = Depends(puede_escribir)):
    service = ViajeService(get_database())
    try:
        creado = service.crear(viaje.model_dump(), current_user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return respuesta(creado, "Viaje creado")


@router.put("/{viaje_id}")
def actualizar_viaje(viaje_id: int, viaje: ViajeUpdate, current_user: dict = Depends(puede_escribir)):
    service = ViajeService(get_database())
    try:
        actualizado = service.actualizar(viaje_id, viaje.model_dump(), current_user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not actualizado:
        raise HTTPException(status_code=404, detail="Viaje no encontrado")
    return respuesta(actualizado, "Viaje actualizado")


@router.patch("/{viaje_id}/estado")
def cambiar_estado(viaje_id: int, cambio: CambioEstado, current_user: dict = Depends(puede_escribir)):
    service = ViajeService(get_database())
    try:
        viaje = service.cambiar_estado(
            viaje_id,
            cambio.estado,
            current_user,
            fecha_llegada_real=cambio.fecha_llegada_real,
            kilometros_reales=cambio.kilometros_reales,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not viaje:
        raise HTTPException(status_code=404, detail="Viaje no encontrado")
    return respuesta(viaje, f"Estado actualizado a {cambio.estado.value}")


@router.post("/{viaje_id}/pago")
def registrar_pago(viaje_id: int, pago: PagoCliente, current_user: dict = Depends(puede_escribir)):
    service = ViajeService(get_database())
    try:
        resultado = service.registrar_pago_cliente(viaje_id, pago.monto, current_user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not resultado:
        raise HTTPException(status_code=404, detail="Viaje no encontrado")
    return respuesta(resultado, "Pago registrado")


@router.delete("/{viaje_id}")
def eliminar_viaje(viaje_id: int, current_user: dict = Depends(puede_escribir)):
    service = ViajeService(get_database())
    try:
        eliminado = service.eliminar(viaje_id, current_user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not eliminado:
        raise HTTPException(status_code=404, detail="Viaje no encontrado")
    return respuesta(mensaje="Viaje eliminado correctamente")
