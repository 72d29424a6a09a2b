import asyncio
import os
from datetime import date
from enum import Enum

import pytest

from flota.cliente.config import ConfiguracionCliente
from flota.cliente.http import (
    MENSAJE_ERROR_SERVIDOR,
    MENSAJE_SESION_EXPIRADA,
    MENSAJE_SIN_CONEXION,
    MENSAJE_SIN_PERMISOS,
    ApiClient,
    ApiError,
    limpiar_params,
)
from flota.cliente.servicios import AuthApi


class Color(Enum):
    ROJO = "ROJO"


def test_limpiar_params_descarta_vacios():
    params = limpiar_params({
        "estado": Color.ROJO,
        "chofer_id": None,
        "busqueda": "",
        "page": 2,
        "activo": True,
        "fecha_desde": date(2025, 1, 31),
    })

    assert params == {"estado": "ROJO", "page": 2, "activo": "true", "fecha_desde": "2025-01-31"}
    assert limpiar_params({}) is None


async def test_envia_el_token_de_la_sesion(api, backend):
    backend.responder("GET", "/viajes", 200, {"exito": True, "datos": []})

    cuerpo = await api.get("/viajes", params={"estado": "PLANIFICADO", "chofer_id": None})

    assert cuerpo["datos"] == []
    assert backend.autorizaciones == ["Bearer token-admin"]


async def test_401_cierra_sesion_y_redirige_una_sola_vez(api, backend, sesion, notificador, navegador):
    backend.responder("GET", "/viajes", 401, {"exito": False, "mensaje": "Token inválido o expirado"})
    backend.responder("GET", "/alertas", 401, {"exito": False, "mensaje": "Token inválido o expirado"})

    resultados = await asyncio.gather(api.get("/viajes"), api.get("/alertas"), return_exceptions=True)

    assert all(isinstance(r, ApiError) and r.status == 401 and r.notificado for r in resultados)
    assert sesion.autenticado is False
    assert not os.path.exists(sesion.ruta_archivo)
    assert navegador.ruta == "/login"
    assert navegador.redirecciones_login == 1
    assert notificador.errores == [MENSAJE_SESION_EXPIRADA]


async def test_segunda_expiracion_tras_volver_a_entrar_avisa_de_nuevo(api, backend, sesion, notificador, navegador):
    backend.responder("GET", "/viajes", 401, {"exito": False, "mensaje": "Token inválido o expirado"})
    backend.responder("GET", "/alertas", 401, {"exito": False, "mensaje": "Token inválido o expirado"})
    backend.responder("POST", "/auth/login", 200, {
        "exito": True, "token": "token-nuevo", "usuario": {"username": "admin", "rol": "ADMIN"},
    })

    with pytest.raises(ApiError):
        await api.get("/viajes")
    assert await AuthApi(api, sesion, notificador).login("admin", "clave") is True
    assert navegador.en_login is False

    with pytest.raises(ApiError) as error:
        await api.get("/alertas")

    assert error.value.notificado is True
    assert navegador.ruta == "/login"
    assert navegador.redirecciones_login == 2
    assert notificador.errores == [MENSAJE_SESION_EXPIRADA, MENSAJE_SESION_EXPIRADA]
    assert backend.autorizaciones[-1] == "Bearer token-nuevo"


async def test_401_del_login_no_es_sesion_expirada(api, backend, sesion, notificador, navegador):
    backend.responder("POST", "/auth/login", 401, {"exito": False, "mensaje": "Credenciales incorrectas"})

    with pytest.raises(ApiError) as error:
        await api.post("/auth/login", json={"usuario": "admin", "password": "mala"})

    assert error.value.status == 401
    assert error.value.mensaje == "Credenciales incorrectas"
    assert error.value.notificado is False
    assert notificador.mensajes == []
    assert navegador.redirecciones_login == 0
    assert sesion.autenticado is True


async def test_403_avisa_sin_permisos(api, backend, notificador):
    backend.responder("DELETE", "/viajes/3", 403, {"exito": False, "mensaje": "No tiene permisos para realizar esta acción"})

    with pytest.raises(ApiError) as error:
        await api.delete("/viajes/3")

    assert error.value.status == 403
    assert notificador.errores == [MENSAJE_SIN_PERMISOS]


async def test_400_muestra_el_primer_error_de_campo(api, backend, notificador):
    backend.responder("POST", "/viajes", 400, {
        "exito": False,
        "mensaje": "Error de validación",
        "errores": [
            {"campo": "dias_credito", "mensaje": "Los días de crédito deben ser 0, 15, 30, 60 o 90 días"},
            {"campo": "origen", "mensaje": "Al menos 3 caracteres"},
        ],
    })

    with pytest.raises(ApiError) as error:
        await api.post("/viajes", json={})

    assert error.value.errores[1]["campo"] == "origen"
    assert notificador.errores == ["Los días de crédito deben ser 0, 15, 30, 60 o 90 días"]


async def test_400_sin_errores_usa_el_mensaje(api, backend, notificador):
    backend.responder("PATCH", "/viajes/1/estado", 400, {"exito": False, "mensaje": "No se puede cambiar de estado PLANIFICADO a COMPLETADO"})

    with pytest.raises(ApiError):
        await api.patch("/viajes/1/estado", json={"estado": "COMPLETADO"})

    assert notificador.errores == ["No se puede cambiar de estado PLANIFICADO a COMPLETADO"]


async def test_404_en_get_no_avisa_pero_en_mutacion_si(api, backend, notificador):
    with pytest.raises(ApiError) as lectura:
        await api.get("/viajes/999")
    assert lectura.value.status == 404
    assert notificador.mensajes == []

    with pytest.raises(ApiError):
        await api.delete("/viajes/999")
    assert notificador.errores == ["No encontrado"]


async def test_500_mensaje_generico(api, backend, notificador):
    backend.responder("GET", "/reportes/cartera", 500, {"exito": False, "mensaje": "Error interno del servidor"})

    with pytest.raises(ApiError) as error:
        await api.get("/reportes/cartera")

    assert error.value.status == 500
    assert notificador.errores == [MENSAJE_ERROR_SERVIDOR]


async def test_sin_conexion(sesion, notificador, navegador):
    config = ConfiguracionCliente(base_url="http://127.0.0.1:1", timeout_segundos=2)
    api = ApiClient(config, sesion, notificador, navegador)
    try:
        with pytest.raises(ApiError) as error:
            await api.get("/viajes")
    finally:
        await api.close()

    assert error.value.status is None
    assert error.value.notificado is True
    assert notificador.errores == [MENSAJE_SIN_CONEXION]
    assert sesion.autenticado is True


async def test_descarga_de_archivos(api, backend):
    backend.responder("GET", "/reportes/cartera/exportar", 200, b"Cliente,Viajes\n")

    contenido = await api.descargar("/reportes/cartera/exportar", params={"formato": "csv"})

    assert contenido == b"Cliente,Viajes\n"
