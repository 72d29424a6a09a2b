import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from flota.core.config import settings
from flota.core.database import get_database
from flota.modules.viajes.service import ViajeService

logger = logging.getLogger(__name__)

JOB_ID = "iniciar_viajes_programados"


def iniciar_viajes_vencidos() -> int:
    """Pasa a EN_CURSO los viajes PLANIFICADO cuya salida ya llegó"""
    try:
        iniciados = ViajeService(get_database()).iniciar_viajes_programados()
        if iniciados:
            logger.info(f"Viajes iniciados automáticamente: {iniciados}")
        return iniciados
    except Exception as e:
        # Se reintenta en el siguiente ciclo
        logger.error(f"Error iniciando viajes programados: {e}")
        return 0


def crear_scheduler(intervalo_segundos: Optional[int] = None) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        iniciar_viajes_vencidos,
        'interval',
        seconds=intervalo_segundos or settings.SCHEDULER_INTERVALO_SEGUNDOS,
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    return scheduler
