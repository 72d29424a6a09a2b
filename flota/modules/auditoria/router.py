import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from flota.core.database import get_database
from flota.core.respuestas import respuesta, respuesta_paginada
from flota.modules.auditoria.service import AuditoriaService
from flota.modules.auth.utils.dependencies import solo_auditor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auditoria", tags=["Auditoría"], dependencies=[Depends(solo_auditor)])


@router.get("")
def listar_auditoria(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    entidad: Optional[str] = None,
    accion: Optional[str] = None,
    usuario_id: Optional[str] = None,
    desde: Optional[datetime] = None,
    hasta: Optional[datetime] = None,
):
    service = AuditoriaService(get_database())
    resultado = service.listar(entidad, accion, usuario_id, desde, hasta, page, limit)
    return respuesta_paginada(resultado["items"], resultado["total"], page, limit)


@router.get("/entidades")
def listar_entidades():
    service = AuditoriaService(get_database())
    return respuesta(service.entidades())


@router.get("/{registro_id}")
def obtener_registro(registro_id: int):
    service = AuditoriaService(get_database())
    registro = service.obtener(registro_id)
    if not registro:
        raise HTTPException(status_code=404, detail="Registro de auditoría no encontrado")
    return respuesta(registro)
