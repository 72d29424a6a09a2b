import asyncio
import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional, Tuple

import aiohttp

from flota.cliente.http import ApiClient, ApiError, RUTA_LOGIN_API
from flota.cliente.notificaciones import Notificador
from flota.cliente.sesion import SessionManager
from flota.core.estados import EstadoViaje

logger = logging.getLogger(__name__)

MENSAJE_LOGIN_LENTO = "La solicitud está tardando demasiado. Por favor intente de nuevo."

# (nombre de archivo, contenido, tipo MIME)
Comprobante = Tuple[str, bytes, str]


def _texto(valor: Any) -> str:
    if isinstance(valor, (datetime, date)):
        return valor.isoformat()
    return str(getattr(valor, "value", valor))


def formulario(campos: dict, comprobante: Optional[Comprobante] = None) -> aiohttp.FormData:
    """multipart/form-data con los campos no vacíos y el comprobante opcional"""
    form = aiohttp.FormData()
    for nombre, valor in campos.items():
        if valor is not None and valor != "":
            form.add_field(nombre, _texto(valor))
    if comprobante:
        nombre_archivo, contenido, tipo_mime = comprobante
        form.add_field("comprobante", contenido, filename=nombre_archivo, content_type=tipo_mime)
    return form


class AuthApi:
    def __init__(self, api: ApiClient, sesion: SessionManager, notificador: Notificador, espera: Optional[float] = None):
        self.api = api
        self.sesion = sesion
        self.notificador = notificador
        self.espera = espera if espera is not None else api.config.espera_login_segundos

    async def login(self, usuario: str, password: str) -> bool:
        try:
            cuerpo = await asyncio.wait_for(
                self.api.post(RUTA_LOGIN_API, json={"usuario": usuario, "password": password}),
                timeout=self.espera,
            )
        except asyncio.TimeoutError:
            self.notificador.error(MENSAJE_LOGIN_LENTO)
            return False
        except ApiError as e:
            if not e.notificado:
                self.notificador.error(e.mensaje)
            return False

        self.sesion.iniciar(cuerpo["token"], cuerpo["usuario"])
        self.api.navegador.salir_de_login()
        return True

    def logout(self) -> None:
        self.sesion.cerrar()


class ViajesApi:
    def __init__(self, api: ApiClient):
        self.api = api

    async def listar(self, filtros: Optional[dict] = None, page: int = 1, limit: int = 20) -> dict:
        params = dict(filtros or {}, page=page, limit=limit)
        return await self.api.get("/viajes", params=params)

    async def obtener(self, viaje_id: int) -> dict:
        cuerpo = await self.api.get(f"/viajes/{viaje_id}")
        return cuerpo["datos"]

    async def cambiar_estado(
        self,
        viaje_id: int,
        estado: EstadoViaje,
        fecha_llegada_real: Optional[datetime] = None,
        kilometros_reales: Optional[float] = None,
    ) -> dict:
        payload = {"estado": EstadoViaje(estado).value}
        if fecha_llegada_real is not None:
            payload["fecha_llegada_real"] = _texto(fecha_llegada_real)
        if kilometros_reales is not None:
            payload["kilometros_reales"] = kilometros_reales
        cuerpo = await self.api.patch(f"/viajes/{viaje_id}/estado", json=payload)
        return cuerpo.get("datos")

    async def registrar_pago(self, viaje_id: int, monto: Decimal) -> dict:
        cuerpo = await self.api.post(f"/viajes/{viaje_id}/pago", json={"monto": str(monto)})
        return cuerpo.get("datos")

    async def crear_gasto(self, viaje_id: int, gasto: dict, comprobante: Optional[Comprobante] = None) -> dict:
        cuerpo = await self.api.post(f"/viajes/{viaje_id}/gastos", data=formulario(gasto, comprobante))
        return cuerpo.get("datos")


class AlertasApi:
    def __init__(self, api: ApiClient):
        self.api = api

    async def obtener(self) -> dict:
        cuerpo = await self.api.get("/alertas")
        return cuerpo["datos"]


PARAMETRO_ENTIDAD = {"vehiculos": "vehiculo_id", "choferes": "chofer_id", "clientes": "cliente_id"}


def _periodo(fecha_desde: date, fecha_hasta: date) -> dict:
    """Fechas sueltas cubren el día completo"""
    if not isinstance(fecha_desde, datetime):
        fecha_desde = datetime.combine(fecha_desde, time.min)
    if not isinstance(fecha_hasta, datetime):
        fecha_hasta = datetime.combine(fecha_hasta, time.max)
    return {"fecha_desde": fecha_desde, "fecha_hasta": fecha_hasta}


class ReportesApi:
    def __init__(self, api: ApiClient):
        self.api = api

    async def cartera(self) -> list:
        cuerpo = await self.api.get("/reportes/cartera")
        return cuerpo.get("datos") or []

    async def exportar_cartera(self, formato: str = "csv") -> bytes:
        return await self.api.descargar("/reportes/cartera/exportar", params={"formato": formato})

    async def general(self, fecha_desde: date, fecha_hasta: date) -> dict:
        cuerpo = await self.api.get("/reportes/general", params=_periodo(fecha_desde, fecha_hasta))
        return cuerpo["datos"]

    async def por_entidad(self, tipo: str, entidad_id: int, fecha_desde: date, fecha_hasta: date) -> dict:
        """tipo: vehiculos, choferes o clientes"""
        params = dict(_periodo(fecha_desde, fecha_hasta), **{PARAMETRO_ENTIDAD[tipo]: entidad_id})
        cuerpo = await self.api.get(f"/reportes/{tipo}", params=params)
        return cuerpo["datos"]

    async def exportar_por_entidad(self, tipo: str, entidad_id: int, fecha_desde: date, fecha_hasta: date) -> bytes:
        params = dict(_periodo(fecha_desde, fecha_hasta), **{PARAMETRO_ENTIDAD[tipo]: entidad_id})
        return await self.api.descargar(f"/reportes/{tipo}/exportar", params=params)

    async def mensual(self, anio: int) -> list:
        cuerpo = await self.api.get("/reportes/mensual", params={"anio": anio})
        return cuerpo.get("datos") or []


class DashboardApi:
    def __init__(self, api: ApiClient):
        self.api = api

    async def resumen(self, anio: Optional[int] = None, mes: Optional[int] = None) -> dict:
        cuerpo = await self.api.get("/dashboard", params={"anio": anio, "mes": mes})
        return cuerpo["datos"]
