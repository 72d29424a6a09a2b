import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from flota.core.archivos import guardar_comprobante
from flota.core.database import get_database
from flota.core.estados import EstadoPagoChofer
from flota.core.respuestas import respuesta, respuesta_paginada
from flota.modules.auth.utils.dependencies import puede_escribir
from flota.modules.gastos.model import MetodoPago
from flota.modules.pagos_chofer.service import PagoChoferService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pagos-choferes", tags=["Pagos a choferes"])


async def _leer_comprobante(comprobante: Optional[UploadFile]) -> Optional[dict]:
    if comprobante is None or not comprobante.filename:
        return None
    contenido = await comprobante.read()
    return guardar_comprobante(contenido, comprobante.filename, comprobante.content_type, "pagos_choferes")


@router.get("")
def listar_pagos(
    chofer_id: Optional[int] = Query(None),
    viaje_id: Optional[int] = Query(None),
    estado: Optional[EstadoPagoChofer] = Query(None),
    fecha_desde: Optional[datetime] = Query(None),
    fecha_hasta: Optional[datetime] = Query(None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    service = PagoChoferService(get_database())
    resultado = service.listar(
        chofer_id, viaje_id, estado.value if estado else None,
        fecha_desde, fecha_hasta, page, limit,
    )
    return respuesta_paginada(resultado["items"], resultado["total"], page, limit)


@router.get("/resumen/{chofer_id}")
def resumen_chofer(
    chofer_id: int,
    fecha_desde: Optional[datetime] = Query(None),
    fecha_hasta: Optional[datetime] = Query(None),
):
    service = PagoChoferService(get_database())
    resumen = service.resumen_chofer(chofer_id, fecha_desde, fecha_hasta)
    if resumen is None:
        raise HTTPException(status_code=404, detail="Chofer no encontrado")
    return respuesta(resumen)


@router.get("/{pago_id}")
def obtener_pago(pago_id: int):
    service = PagoChoferService(get_database())
    pago = service.obtener(pago_id)
    if not pago:
        raise HTTPException(status_code=404, detail="Pago no encontrado")
    return respuesta(pago)


@router.post("", status_code=201)
async def crear_pago(
    chofer_id: int = Form(...),
    monto: Decimal = Form(...),
    fecha: Optional[datetime] = Form(None),
    metodo_pago: MetodoPago = Form(MetodoPago.EFECTIVO),
    descripcion: Optional[str] = Form(None),
    viaje_id: Optional[int] = Form(None),
    comprobante: Optional[UploadFile] = File(None),
    current_user: dict = Depends(puede_escribir),
):
    service = PagoChoferService(get_database())
    datos = {
        "chofer_id": chofer_id,
        "monto": monto,
        "fecha": fecha,
        "metodo_pago": metodo_pago,
        "descripcion": descripcion,
        "viaje_id": viaje_id,
    }
    try:
        metadatos = await _leer_comprobante(comprobante)
        pago = service.crear(datos, metadatos, current_user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return respuesta(pago, "Pago registrado")


@router.patch("/{pago_id}/pagar")
async def marcar_pagado(
    pago_id: int,
    monto: Optional[Decimal] = Form(None),
    fecha: Optional[datetime] = Form(None),
    metodo_pago: Optional[MetodoPago] = Form(None),
    descripcion: Optional[str] = Form(None),
    comprobante: Optional[UploadFile] = File(None),
    current_user: dict = Depends(puede_escribir),
):
    service = PagoChoferService(get_database())
    try:
        metadatos = await _leer_comprobante(comprobante)
        pago = service.marcar_pagado(
            pago_id, current_user,
            monto=monto, fecha=fecha, metodo_pago=metodo_pago,
            descripcion=descripcion, comprobante=metadatos,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not pago:
        raise HTTPException(status_code=404, detail="Pago no encontrado")
    return respuesta(pago, "Pago marcado como pagado")


@router.delete("/{pago_id}")
def eliminar_pago(pago_id: int, current_user: dict = Depends(puede_escribir)):
    service = PagoChoferService(get_database())
    try:
        eliminado = service.eliminar(pago_id, current_user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not eliminado:
        raise HTTPException(status_code=404, detail="Pago no encontrado")
    return respuesta(mensaje="Pago eliminado")
