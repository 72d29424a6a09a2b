import json
import logging
import os
from typing import Optional

from flota.core.estados import Rol

logger = logging.getLogger(__name__)

CLAVE_TOKEN = "token"
CLAVE_USUARIO = "usuario"


class SessionManager:
    """
    Sesión actual del cliente.

    Se persiste en un archivo JSON con las claves fijas `token` y `usuario`;
    se hidrata al arrancar, se escribe al iniciar sesión y se borra al cerrar
    sesión o ante un 401.
    """

    def __init__(self, ruta_archivo: Optional[str] = None):
        self.ruta_archivo = ruta_archivo
        self.token: Optional[str] = None
        self.usuario: Optional[dict] = None

    def hidratar(self) -> bool:
        if not self.ruta_archivo or not os.path.exists(self.ruta_archivo):
            return False
        try:
            with open(self.ruta_archivo, "r", encoding="utf-8") as f:
                guardado = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Sesión guardada ilegible, se descarta: {e}")
            self.cerrar()
            return False

        if not guardado.get(CLAVE_TOKEN) or not isinstance(guardado.get(CLAVE_USUARIO), dict):
            return False
        self.token = guardado[CLAVE_TOKEN]
        self.usuario = guardado[CLAVE_USUARIO]
        return True

    def iniciar(self, token: str, usuario: dict) -> None:
        self.token = token
        self.usuario = usuario
        if self.ruta_archivo:
            with open(self.ruta_archivo, "w", encoding="utf-8") as f:
                json.dump({CLAVE_TOKEN: token, CLAVE_USUARIO: usuario}, f, ensure_ascii=False)

    def cerrar(self) -> None:
        self.token = None
        self.usuario = None
        if self.ruta_archivo and os.path.exists(self.ruta_archivo):
            os.remove(self.ruta_archivo)

    @property
    def autenticado(self) -> bool:
        return bool(self.token)

    @property
    def rol(self) -> Optional[str]:
        return (self.usuario or {}).get("rol")

    @property
    def can_write(self) -> bool:
        return self.autenticado and self.rol == Rol.ADMIN.value

    @property
    def es_auditor(self) -> bool:
        return self.autenticado and self.rol == Rol.AUDITOR.value
