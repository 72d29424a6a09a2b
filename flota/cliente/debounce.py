import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from flota.cliente.http import ApiError

logger = logging.getLogger(__name__)


class Debouncer:
    """Ejecuta `funcion` una sola vez tras `espera` segundos sin nuevas llamadas"""

    def __init__(self, funcion: Callable[..., Awaitable[Any]], espera: float):
        self.funcion = funcion
        self.espera = espera
        self._tarea: Optional[asyncio.Task] = None

    def llamar(self, *args, **kwargs) -> asyncio.Task:
        self.cancelar()
        self._tarea = asyncio.ensure_future(self._diferir(*args, **kwargs))
        return self._tarea

    async def _diferir(self, *args, **kwargs):
        await asyncio.sleep(self.espera)
        return await self.funcion(*args, **kwargs)

    def cancelar(self) -> None:
        if self._tarea is not None and not self._tarea.done():
            self._tarea.cancel()

    @property
    def pendiente(self) -> bool:
        return self._tarea is not None and not self._tarea.done()

    async def esperar(self) -> Any:
        if self._tarea is None:
            return None
        try:
            return await self._tarea
        except asyncio.CancelledError:
            return None


class CargadorViajes:
    """Lista de viajes que se recarga con los filtros, con espera entre cambios"""

    def __init__(self, viajes, espera: float = 0.3, limit: int = 20):
        self.viajes = viajes
        self.filtros: dict = {}
        self.page = 1
        self.limit = limit
        self.items: list = []
        self.paginacion: dict = {}
        self._debouncer = Debouncer(self._recargar, espera)

    def cambiar_filtro(self, **filtros) -> asyncio.Task:
        self.filtros.update(filtros)
        self.filtros = {k: v for k, v in self.filtros.items() if v is not None and v != ""}
        self.page = 1
        return self._debouncer.llamar()

    async def recargar(self) -> None:
        """Recarga inmediata, sin esperar"""
        self._debouncer.cancelar()
        await self._recargar()

    async def esperar(self) -> None:
        await self._debouncer.esperar()

    async def _recargar(self) -> None:
        try:
            cuerpo = await self.viajes.listar(dict(self.filtros), page=self.page, limit=self.limit)
        except ApiError as e:
            logger.info(f"No se pudo cargar la lista de viajes: {e.mensaje}")
            return
        self.items = cuerpo.get("datos") or []
        self.paginacion = cuerpo.get("paginacion") or {}
