import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from flota.core.archivos import guardar_comprobante
from flota.core.database import get_database
from flota.core.respuestas import respuesta
from flota.modules.auth.utils.dependencies import puede_escribir
from flota.modules.gastos.model import MetodoPago, TipoGasto
from flota.modules.gastos.service import GastoViajeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/viajes", tags=["Gastos de viaje"])


@router.get("/{viaje_id}/gastos")
def listar_gastos(viaje_id: int):
    service = GastoViajeService(get_database())
    gastos = service.listar_por_viaje(viaje_id)
    if gastos is None:
        raise HTTPException(status_code=404, detail="Viaje no encontrado")
    return respuesta(gastos)


@router.post("/{viaje_id}/gastos", status_code=201)
async def crear_gasto(
    viaje_id: int,
    tipo_gasto: TipoGasto = Form(...),
    monto: Decimal = Form(...),
    fecha: Optional[datetime] = Form(None),
    metodo_pago: MetodoPago = Form(MetodoPago.EFECTIVO),
    descripcion: Optional[str] = Form(None),
    comprobante: Optional[UploadFile] = File(None),
    current_user: dict = Depends(puede_escribir),
):
    service = GastoViajeService(get_database())
    datos = {
        "tipo_gasto": tipo_gasto,
        "monto": monto,
        "fecha": fecha,
        "metodo_pago": metodo_pago,
        "descripcion": descripcion,
    }

    try:
        metadatos = None
        if comprobante is not None and comprobante.filename:
            contenido = await comprobante.read()
            metadatos = guardar_comprobante(contenido, comprobante.filename, comprobante.content_type, "gastos")
        gasto = service.crear(viaje_id, datos, metadatos, current_user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if gasto is None:
        raise HTTPException(status_code=404, detail="Viaje no encontrado")
    return respuesta(gasto, "Gasto registrado")
