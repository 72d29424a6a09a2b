from fastapi import APIRouter

from flota.core.database import get_database
from flota.core.respuestas import respuesta
from flota.modules.alertas.service import AlertaService

router = APIRouter(prefix="/alertas", tags=["Alertas"])


@router.get("")
def obtener_alertas():
    service = AlertaService(get_database())
    return respuesta(service.obtener_alertas())
