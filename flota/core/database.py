import logging
from pymongo import MongoClient
from pymongo.errors import ConnectionFailure
from flota.core.config import settings

logger = logging.getLogger(__name__)


class Database:
    client: MongoClient = None
    _connected: bool = False


db = Database()


def get_database():
    # Conectar automáticamente si no está conectado
    if not db._connected:
        connect_to_mongo()

    if db.client is None:
        raise RuntimeError(
            "La base de datos no está conectada. "
            "Asegúrate de que MongoDB esté corriendo."
        )

    return db.client[settings.DATABASE_NAME]


def connect_to_mongo():
    if db._connected:
        logger.warning("Ya existe una conexión activa a MongoDB")
        return

    try:
        logger.info(f"Intentando conectar a MongoDB: {settings.MONGODB_URL}")

        db.client = MongoClient(
            settings.MONGODB_URL,
            serverSelectionTimeoutMS=5000,
            connectTimeoutMS=5000,
            socketTimeoutMS=5000,
        )

        db.client.admin.command('ping')
        db._connected = True

        logger.info(f"Conectado a MongoDB, base de datos: {settings.DATABASE_NAME}")

    except ConnectionFailure as e:
        logger.error(f"Error al conectar a MongoDB ({settings.MONGODB_URL}): {e}")
        db.client = None
        raise


def close_mongo_connection():
    if db.client:
        db.client.close()
        db._connected = False
        logger.info("Conexión a MongoDB cerrada")
    else:
        logger.warning("No hay conexión activa para cerrar")


def use_client(client):
    """Inyecta un cliente ya construido (mongomock en pruebas, réplica en scripts)"""
    db.client = client
    db._connected = client is not None
