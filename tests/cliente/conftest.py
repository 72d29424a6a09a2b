import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from flota.cliente.config import ConfiguracionCliente
from flota.cliente.http import ApiClient
from flota.cliente.notificaciones import Navegador, Notificador
from flota.cliente.sesion import SessionManager


class BackendFalso:
    """Servidor HTTP en memoria: responde lo registrado y anota cada petición"""

    def __init__(self):
        self.url = None
        self.respuestas = {}
        self.peticiones = []
        self.cuerpos = []
        self.autorizaciones = []
        self.consultas = []

    def responder(self, method: str, path: str, status: int = 200, cuerpo=None, espera: float = 0):
        """Un path terminado en * responde a cualquier ruta con ese prefijo"""
        self.respuestas[(method, path)] = (status, cuerpo, espera)

    def _buscar(self, method: str, path: str):
        if (method, path) in self.respuestas:
            return self.respuestas[(method, path)]
        for (m, p), respuesta in self.respuestas.items():
            if m == method and p.endswith("*") and path.startswith(p[:-1]):
                return respuesta
        return None

    def contar(self, method: str, path: str) -> int:
        return self.peticiones.count((method, path))

    async def manejar(self, request: web.Request) -> web.StreamResponse:
        self.peticiones.append((request.method, request.path))
        self.autorizaciones.append(request.headers.get("Authorization"))
        self.consultas.append(dict(request.query))
        if request.content_type == "application/json":
            self.cuerpos.append(await request.json())
        elif request.can_read_body:
            self.cuerpos.append(dict(await request.post()))
        else:
            self.cuerpos.append(None)

        respuesta = self._buscar(request.method, request.path)
        if respuesta is None:
            return web.json_response({"exito": False, "mensaje": "No encontrado"}, status=404)
        status, cuerpo, espera = respuesta
        if espera:
            await asyncio.sleep(espera)
        if isinstance(cuerpo, bytes):
            return web.Response(body=cuerpo, status=status, content_type="text/csv")
        return web.json_response(cuerpo, status=status)


@pytest.fixture
async def backend():
    falso = BackendFalso()
    app = web.Application()
    app.router.add_route("*", "/{ruta:.*}", falso.manejar)
    servidor = TestServer(app)
    await servidor.start_server()
    falso.url = str(servidor.make_url("/"))
    yield falso
    await servidor.close()


@pytest.fixture
def config(backend):
    return ConfiguracionCliente(base_url=backend.url, timeout_segundos=5, espera_filtros_segundos=0.05)


@pytest.fixture
def sesion(tmp_path):
    sesion = SessionManager(str(tmp_path / "sesion.json"))
    sesion.iniciar("token-admin", {"username": "admin", "rol": "ADMIN"})
    return sesion


@pytest.fixture
def notificador():
    return Notificador()


@pytest.fixture
def navegador():
    return Navegador("/viajes/1")


@pytest.fixture
async def api(config, sesion, notificador, navegador):
    cliente = ApiClient(config, sesion, notificador, navegador)
    yield cliente
    await cliente.close()
