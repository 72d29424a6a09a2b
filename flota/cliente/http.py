"""
Cliente REST del backend.

Todas las llamadas pasan por `ApiClient.request`, y todos los fallos por un
único clasificador (`_clasificar`) que decide el aviso al usuario. El error
resultante lleva `notificado` para que las vistas no avisen dos veces. No hay
reintentos automáticos.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, List, Optional

import aiohttp

from flota.cliente.config import ConfiguracionCliente
from flota.cliente.notificaciones import Navegador, Notificador
from flota.cliente.sesion import SessionManager

logger = logging.getLogger(__name__)

RUTA_LOGIN_API = "/auth/login"

MENSAJE_SESION_EXPIRADA = "Sesión expirada. Por favor inicie sesión nuevamente."
MENSAJE_SIN_PERMISOS = "No tiene permisos para realizar esta acción."
MENSAJE_ERROR_SERVIDOR = "Error interno del servidor. Por favor intente más tarde."
MENSAJE_SIN_CONEXION = "No hay conexión con el servidor. Verifique su internet."


class ApiError(Exception):
    def __init__(
        self,
        mensaje: str,
        status: Optional[int] = None,
        errores: Optional[List[dict]] = None,
        notificado: bool = False,
    ):
        super().__init__(mensaje)
        self.mensaje = mensaje
        self.status = status
        self.errores = errores or []
        self.notificado = notificado


def _valor_param(valor: Any) -> Any:
    if isinstance(valor, Enum):
        return valor.value
    if isinstance(valor, bool):
        return "true" if valor else "false"
    if isinstance(valor, (int, float, str)):
        return valor
    if hasattr(valor, "isoformat"):
        return valor.isoformat()
    return str(valor)


def limpiar_params(params: Optional[dict]) -> Optional[dict]:
    """Quita los filtros vacíos; aiohttp no acepta None en la query"""
    if not params:
        return None
    return {k: _valor_param(v) for k, v in params.items() if v is not None and v != ""}


class ApiClient:
    def __init__(
        self,
        config: ConfiguracionCliente,
        sesion: SessionManager,
        notificador: Notificador,
        navegador: Navegador,
    ):
        self.config = config
        self.sesion = sesion
        self.notificador = notificador
        self.navegador = navegador
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_segundos)
            self.session = aiohttp.ClientSession(timeout=timeout)
        return self.session

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()

    def _headers(self) -> dict:
        if self.sesion.token:
            return {"Authorization": f"Bearer {self.sesion.token}"}
        return {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        data: Any = None,
        crudo: bool = False,
    ) -> Any:
        method = method.upper()
        url = f"{self.config.base_url.rstrip('/')}{path}"
        session = await self._get_session()

        try:
            async with session.request(
                method, url,
                params=limpiar_params(params),
                json=json,
                data=data,
                headers=self._headers(),
            ) as response:
                status = response.status
                if crudo and status < 400:
                    return await response.read()
                try:
                    cuerpo = await response.json(content_type=None)
                except ValueError:
                    cuerpo = None
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{method} {path} sin respuesta: {e}")
            raise self._clasificar(None, None, method, path) from e

        if status >= 400:
            raise self._clasificar(status, cuerpo if isinstance(cuerpo, dict) else {}, method, path)
        return cuerpo

    def _clasificar(self, status: Optional[int], cuerpo: Optional[dict], method: str, path: str) -> ApiError:
        cuerpo = cuerpo or {}
        mensaje = cuerpo.get("mensaje")
        errores = cuerpo.get("errores") if isinstance(cuerpo.get("errores"), list) else []

        if status is None:
            self.notificador.error(MENSAJE_SIN_CONEXION)
            return ApiError(MENSAJE_SIN_CONEXION, notificado=True)

        if status == 401:
            # Credenciales incorrectas: el formulario de login decide qué mostrar
            if path.startswith(RUTA_LOGIN_API):
                return ApiError(mensaje or "Credenciales incorrectas", status, errores)
            # Un aviso por sesión: los 401 que llegan con la sesión ya cerrada no repiten
            expirada = self.sesion.autenticado or not self.navegador.en_login
            self.sesion.cerrar()
            if expirada:
                self.navegador.ir_a_login()
                self.notificador.error(MENSAJE_SESION_EXPIRADA)
            return ApiError(MENSAJE_SESION_EXPIRADA, status, errores, notificado=True)

        if status == 403:
            self.notificador.error(MENSAJE_SIN_PERMISOS)
            return ApiError(MENSAJE_SIN_PERMISOS, status, errores, notificado=True)

        if status == 400:
            texto = errores[0].get("mensaje") if errores and errores[0].get("mensaje") else (mensaje or "Error en la solicitud")
            self.notificador.error(texto)
            return ApiError(texto, status, errores, notificado=True)

        if status == 404:
            texto = mensaje or "Recurso no encontrado"
            # Un GET sin resultado puede ser una búsqueda vacía
            if method == "GET":
                return ApiError(texto, status, errores)
            self.notificador.error(texto)
            return ApiError(texto, status, errores, notificado=True)

        if status >= 500:
            self.notificador.error(MENSAJE_ERROR_SERVIDOR)
            return ApiError(MENSAJE_ERROR_SERVIDOR, status, errores, notificado=True)

        texto = mensaje or "Error en la solicitud"
        self.notificador.error(texto)
        return ApiError(texto, status, errores, notificado=True)

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None, data: Any = None) -> Any:
        return await self.request("POST", path, json=json, data=data)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None, data: Any = None) -> Any:
        return await self.request("PATCH", path, json=json, data=data)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def descargar(self, path: str, params: Optional[dict] = None) -> bytes:
        return await self.request("GET", path, params=params, crudo=True)
