"""
Autocompletado de lugares (Nominatim) y estimación de ruta (OSRM).

Cualquier fallo de estos servicios externos se traduce en "sin sugerencias" o
"sin ruta"; nunca bloquea la creación de un viaje.
"""
import asyncio
import logging
import time
from collections import OrderedDict
from typing import Any, Callable, List, Optional

import aiohttp

from flota.cliente.config import ConfiguracionCliente

logger = logging.getLogger(__name__)

MIN_CARACTERES = 2
MAX_RESULTADOS = 5


class CacheAcotada:
    """Cache LRU con caducidad; al superar `max_entradas` se descarta la más antigua"""

    def __init__(self, max_entradas: int, ttl_segundos: float, reloj: Callable[[], float] = time.monotonic):
        self.max_entradas = max_entradas
        self.ttl_segundos = ttl_segundos
        self.reloj = reloj
        self._datos: "OrderedDict[str, tuple]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._datos)

    def __contains__(self, clave: str) -> bool:
        return self.get(clave) is not None

    def get(self, clave: str) -> Optional[Any]:
        entrada = self._datos.get(clave)
        if entrada is None:
            return None
        guardado, valor = entrada
        if self.reloj() - guardado > self.ttl_segundos:
            del self._datos[clave]
            return None
        self._datos.move_to_end(clave)
        return valor

    def set(self, clave: str, valor: Any) -> None:
        self._datos[clave] = (self.reloj(), valor)
        self._datos.move_to_end(clave)
        while len(self._datos) > self.max_entradas:
            self._datos.popitem(last=False)


def normalizar(consulta: str) -> str:
    return " ".join((consulta or "").split()).lower()


def nombre_corto(nombre: str) -> str:
    partes = [p.strip() for p in (nombre or "").split(",")]
    return ", ".join(partes[:2]) if len(partes) > 2 else partes[0]


class Geocodificador:
    def __init__(self, config: ConfiguracionCliente, cache: Optional[CacheAcotada] = None):
        self.config = config
        self.cache = cache or CacheAcotada(config.cache_geocoding_max, config.cache_geocoding_ttl_segundos)
        self.session: Optional[aiohttp.ClientSession] = None
        self.consultas_remotas = 0
        self._ultima_sugerencia = 0

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_segundos)
            self.session = aiohttp.ClientSession(timeout=timeout)
        return self.session

    async def close(self):
        if self.session and not self.session.closed:
            await self.session.close()

    async def buscar(self, consulta: str) -> List[dict]:
        clave = normalizar(consulta)
        if len(clave) < MIN_CARACTERES:
            return []

        guardado = self.cache.get(clave)
        if guardado is not None:
            return guardado

        params = {
            "format": "json",
            "q": f"{consulta.strip()}, {self.config.pais_geocoding}",
            "limit": str(MAX_RESULTADOS),
        }
        try:
            session = await self._get_session()
            self.consultas_remotas += 1
            async with session.get(
                f"{self.config.nominatim_url.rstrip('/')}/search",
                params=params,
                headers={"Accept-Language": "es"},
            ) as response:
                if response.status != 200:
                    logger.warning(f"Geocodificación respondió {response.status}")
                    return []
                datos = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Geocodificación sin respuesta: {e}")
            return []

        resultados = [
            {
                "nombre": nombre_corto(d.get("display_name", "")),
                "nombre_completo": d.get("display_name", ""),
                "lat": float(d["lat"]),
                "lon": float(d["lon"]),
            }
            for d in (datos if isinstance(datos, list) else [])
            if "lat" in d and "lon" in d
        ]
        self.cache.set(clave, resultados)
        return resultados

    async def sugerir(self, consulta: str) -> Optional[List[dict]]:
        """Como `buscar`, tras la espera de tecleo; None si llegó otra consulta"""
        self._ultima_sugerencia += 1
        turno = self._ultima_sugerencia
        await asyncio.sleep(self.config.espera_geocoding_segundos)
        if turno != self._ultima_sugerencia:
            return None
        return await self.buscar(consulta)

    async def calcular_ruta(self, origen: dict, destino: dict) -> Optional[dict]:
        """{distancia_km, duracion_min} o None si no hay ruta"""
        coordenadas = f"{origen['lon']},{origen['lat']};{destino['lon']},{destino['lat']}"
        try:
            session = await self._get_session()
            async with session.get(
                f"{self.config.osrm_url.rstrip('/')}/route/v1/driving/{coordenadas}",
                params={"overview": "false"},
            ) as response:
                datos = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"Cálculo de ruta sin respuesta: {e}")
            return None

        datos = datos if isinstance(datos, dict) else {}
        rutas = datos.get("routes") or []
        if datos.get("code") != "Ok" or not rutas:
            return None
        return {
            "distancia_km": round(rutas[0]["distance"] / 1000),
            "duracion_min": round(rutas[0]["duration"] / 60),
        }
