import asyncio
import logging
from typing import Optional

from flota.cliente.http import ApiError

logger = logging.getLogger(__name__)


class SondeoAlertas:
    """Consulta GET /alertas cada `intervalo` segundos; solo lectura"""

    def __init__(self, alertas_api, intervalo: float = 300.0):
        self.alertas_api = alertas_api
        self.intervalo = intervalo
        self.ultimo: Optional[dict] = None
        self._tarea: Optional[asyncio.Task] = None

    @property
    def resumen(self) -> dict:
        return (self.ultimo or {}).get("resumen") or {}

    @property
    def total(self) -> int:
        return int(self.resumen.get("total", 0))

    async def actualizar(self) -> Optional[dict]:
        try:
            self.ultimo = await self.alertas_api.obtener()
        except ApiError as e:
            # Se conserva el último resultado conocido
            logger.info(f"No se pudieron obtener las alertas: {e.mensaje}")
        return self.ultimo

    async def _bucle(self):
        while True:
            await self.actualizar()
            await asyncio.sleep(self.intervalo)

    def iniciar(self) -> asyncio.Task:
        if self._tarea is None or self._tarea.done():
            self._tarea = asyncio.ensure_future(self._bucle())
        return self._tarea

    async def detener(self) -> None:
        if self._tarea is not None and not self._tarea.done():
            self._tarea.cancel()
            try:
                await self._tarea
            except asyncio.CancelledError:
                pass
        self._tarea = None
