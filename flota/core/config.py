import os
from dotenv import load_dotenv

load_dotenv()


def _bool(value: str) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "si", "on")


class Settings:
    """Configuración del backend leída de variables de entorno (.env)"""

    def __init__(self):
        self.MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
        self.DATABASE_NAME = os.getenv("DATABASE_NAME", "flota_db")

        self.SECRET_KEY = os.getenv("SECRET_KEY", "cambiar-esta-clave-en-produccion")
        self.ALGORITHM = os.getenv("ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

        self.UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
        self.MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

        self.SCHEDULER_ENABLED = _bool(os.getenv("SCHEDULER_ENABLED", "true"))
        self.SCHEDULER_INTERVALO_SEGUNDOS = int(os.getenv("SCHEDULER_INTERVALO_SEGUNDOS", "60"))

        self.ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
        self.ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
        self.AUDITOR_USERNAME = os.getenv("AUDITOR_USERNAME", "auditor")
        self.AUDITOR_PASSWORD = os.getenv("AUDITOR_PASSWORD", "auditor123")

        self.CORS_ORIGINS = [
            o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
        ]


settings = Settings()
