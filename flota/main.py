import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from flota.core.config import settings
from flota.core.database import get_database
from flota.core.respuestas import registrar_manejadores
from flota.core.scheduler import crear_scheduler, iniciar_viajes_vencidos
from flota.core.seed_data import SeedService
from flota.modules.auth.routers import auth
from flota.modules.auth.utils.dependencies import puede_leer
from flota.modules.dataservice.routes.catalogos_routes import (
    choferes_router,
    clientes_router,
    materiales_router,
    vehiculos_router,
)
from flota.modules.viajes.router import router as viajes_router
from flota.modules.gastos.router import router as gastos_router
from flota.modules.pagos_chofer.router import router as pagos_chofer_router
from flota.modules.reportes.router import router as reportes_router
from flota.modules.alertas.router import router as alertas_router
from flota.modules.auditoria.router import router as auditoria_router
from flota.modules.dashboard.router import router as dashboard_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("flota")


def create_app() -> FastAPI:
    app = FastAPI(title="flota", version="0.1.0", lifespan=lifespan)

    registrar_manejadores(app)

    app.include_router(auth.router)

    app.include_router(choferes_router, dependencies=[Depends(puede_leer)])
    app.include_router(vehiculos_router, dependencies=[Depends(puede_leer)])
    app.include_router(clientes_router, dependencies=[Depends(puede_leer)])
    app.include_router(materiales_router, dependencies=[Depends(puede_leer)])

    app.include_router(viajes_router, dependencies=[Depends(puede_leer)])
    app.include_router(gastos_router, dependencies=[Depends(puede_leer)])
    app.include_router(pagos_chofer_router, dependencies=[Depends(puede_leer)])

    app.include_router(reportes_router, dependencies=[Depends(puede_leer)])
    app.include_router(alertas_router, dependencies=[Depends(puede_leer)])
    app.include_router(dashboard_router, dependencies=[Depends(puede_leer)])
    app.include_router(auditoria_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Comprobantes subidos, servidos tal cual
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    @app.get("/", tags=["root"])
    async def read_root():
        return {"message": "flota API"}

    @app.get("/health", tags=["health"])
    def health():
        try:
            get_database().command("ping")
            return {"status": "ok"}
        except Exception as e:
            logger.error(f"Health check fallido: {e}")
            return {"status": "error"}

    return app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager para manejar eventos de inicio y cierre
    """
    logger.info("Iniciando aplicación...")

    initialize_database()

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        iniciar_viajes_vencidos()
        scheduler = crear_scheduler()
        scheduler.start()
        logger.info("✓ Inicio automático de viajes programado")

    yield

    logger.info("Cerrando aplicación...")
    if scheduler is not None:
        scheduler.shutdown(wait=False)


def initialize_database():
    """
    Crea los usuarios iniciales si la colección está vacía
    """
    try:
        seed_service = SeedService(get_database())
        counts = seed_service.check_existing_data()

        if counts["users"] == 0:
            logger.info("Base de datos vacía, creando usuarios iniciales...")
            result = seed_service.create_initial_data()
            if result["success"]:
                logger.info(f"✓ Usuarios iniciales creados: {result['counts']['users']}")
            else:
                logger.error(f"✗ Error creando datos iniciales: {result.get('error')}")
        else:
            logger.info(f"Base de datos ya tiene {counts['users']} usuarios")

    except Exception as e:
        logger.error(f"Error inicializando base de datos: {str(e)}")


app = create_app()

if __name__ == "__main__":
    uvicorn.run("flota.main:app", host="0.0.0.0", port=8000, reload=True)
