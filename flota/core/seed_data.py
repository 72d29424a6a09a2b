# seed_data.py
import logging
from typing import Dict

from flota.core.config import settings
from flota.core.estados import Rol
from flota.modules.auth.services.user_service import UserService

logger = logging.getLogger(__name__)


class SeedService:
    def __init__(self, db):
        self.db = db
        self.users_collection = db["users"]

    def create_users(self) -> int:
        """Crea el administrador y el auditor iniciales si no existen"""
        logger.info("Creando usuarios iniciales...")
        user_service = UserService(self.db)

        users_data = [
            {
                "email": f"{settings.ADMIN_USERNAME}@flota.local",
                "username": settings.ADMIN_USERNAME,
                "password": settings.ADMIN_PASSWORD,
                "full_name": "Administrador",
                "rol": Rol.ADMIN.value,
            },
            {
                "email": f"{settings.AUDITOR_USERNAME}@flota.local",
                "username": settings.AUDITOR_USERNAME,
                "password": settings.AUDITOR_PASSWORD,
                "full_name": "Auditor",
                "rol": Rol.AUDITOR.value,
            },
        ]

        creados = 0
        for user_data in users_data:
            if user_service.get_user_by_username(user_data["username"]):
                logger.info(f"✓ Usuario ya existe: {user_data['username']}")
                continue
            try:
                user_service.create_user(user_data)
                creados += 1
                logger.info(f"✓ Usuario creado: {user_data['username']} ({user_data['rol']})")
            except ValueError as e:
                logger.error(f"✗ Error creando usuario {user_data['username']}: {str(e)}")

        return creados

    def check_existing_data(self) -> Dict[str, int]:
        try:
            return {"users": self.users_collection.count_documents({})}
        except Exception as e:
            logger.error(f"Error verificando datos: {str(e)}")
            return {"users": 0}

    def create_initial_data(self) -> Dict:
        try:
            creados = self.create_users()
            return {"success": True, "counts": {"users": creados}}
        except Exception as e:
            logger.error(f"Error en seed: {str(e)}")
            return {"success": False, "error": str(e)}
