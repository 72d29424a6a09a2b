import logging
from typing import List, Tuple

logger = logging.getLogger(__name__)

RUTA_LOGIN = "/login"
RUTA_INICIO = "/"


class Notificador:
    """Avisos al usuario; la interfaz lee `mensajes` o sobreescribe `mostrar`"""

    def __init__(self):
        self.mensajes: List[Tuple[str, str]] = []

    def mostrar(self, nivel: str, mensaje: str) -> None:
        self.mensajes.append((nivel, mensaje))

    def error(self, mensaje: str) -> None:
        logger.info(f"Aviso de error: {mensaje}")
        self.mostrar("error", mensaje)

    def exito(self, mensaje: str) -> None:
        self.mostrar("exito", mensaje)

    @property
    def errores(self) -> List[str]:
        return [m for nivel, m in self.mensajes if nivel == "error"]


class Navegador:
    def __init__(self, ruta: str = "/"):
        self.ruta = ruta
        self.redirecciones_login = 0

    @property
    def en_login(self) -> bool:
        return self.ruta.startswith(RUTA_LOGIN)

    def ir_a(self, ruta: str) -> None:
        self.ruta = ruta

    def ir_a_login(self) -> None:
        self.redirecciones_login += 1
        self.ir_a(RUTA_LOGIN)

    def salir_de_login(self) -> None:
        if self.en_login:
            self.ir_a(RUTA_INICIO)
