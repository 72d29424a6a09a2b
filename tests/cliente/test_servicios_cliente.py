import json
from datetime import date

from flota.cliente.servicios import MENSAJE_LOGIN_LENTO, AuthApi, DashboardApi, ReportesApi, ViajesApi
from flota.cliente.sesion import SessionManager


async def test_login_guarda_la_sesion(api, backend, tmp_path, notificador):
    sesion = SessionManager(str(tmp_path / "nueva.json"))
    api.sesion = sesion
    backend.responder("POST", "/auth/login", 200, {
        "exito": True, "token": "abc", "usuario": {"username": "auditor", "rol": "AUDITOR"},
    })

    assert await AuthApi(api, sesion, notificador).login("auditor", "clave") is True

    assert sesion.es_auditor is True
    assert sesion.can_write is False
    with open(sesion.ruta_archivo, encoding="utf-8") as f:
        assert json.load(f) == {"token": "abc", "usuario": {"username": "auditor", "rol": "AUDITOR"}}
    assert backend.cuerpos[-1] == {"usuario": "auditor", "password": "clave"}


async def test_login_con_credenciales_incorrectas_avisa_una_vez(api, backend, sesion, notificador):
    backend.responder("POST", "/auth/login", 401, {"exito": False, "mensaje": "Credenciales incorrectas"})

    assert await AuthApi(api, sesion, notificador).login("admin", "mala") is False

    assert notificador.errores == ["Credenciales incorrectas"]


async def test_login_lento_se_abandona(api, backend, sesion, notificador):
    backend.responder("POST", "/auth/login", 200, {"exito": True, "token": "t", "usuario": {}}, espera=0.3)

    assert await AuthApi(api, sesion, notificador, espera=0.05).login("admin", "clave") is False

    assert notificador.errores == [MENSAJE_LOGIN_LENTO]


async def test_gasto_viaja_como_multipart(api, backend):
    backend.responder("POST", "/viajes/4/gastos", 201, {"exito": True, "datos": {"id": 1}})

    await ViajesApi(api).crear_gasto(
        4,
        {"tipo_gasto": "PEAJE", "monto": "2.50", "descripcion": None},
        ("ticket.pdf", b"%PDF-1.4", "application/pdf"),
    )

    enviado = backend.cuerpos[-1]
    assert enviado["tipo_gasto"] == "PEAJE"
    assert enviado["monto"] == "2.50"
    assert "descripcion" not in enviado
    assert enviado["comprobante"].filename == "ticket.pdf"


async def test_reporte_general_envia_el_dia_completo(api, backend):
    backend.responder("GET", "/reportes/general", 200, {"exito": True, "datos": {"ingresos": 0}})

    await ReportesApi(api).general(date(2025, 5, 1), date(2025, 5, 31))

    assert backend.peticiones == [("GET", "/reportes/general")]
    assert backend.consultas[-1] == {
        "fecha_desde": "2025-05-01T00:00:00",
        "fecha_hasta": "2025-05-31T23:59:59.999999",
    }


async def test_reporte_por_vehiculo_envia_el_id_de_la_entidad(api, backend):
    backend.responder("GET", "/reportes/vehiculos", 200, {"exito": True, "datos": {"ingresos": 0}})

    await ReportesApi(api).por_entidad("vehiculos", 7, date(2025, 5, 1), date(2025, 5, 31))

    assert backend.consultas[-1]["vehiculo_id"] == "7"
    assert backend.consultas[-1]["fecha_desde"] == "2025-05-01T00:00:00"


async def test_dashboard_sin_mes_no_envia_parametros_vacios(api, backend):
    backend.responder("GET", "/dashboard", 200, {"exito": True, "datos": {"periodo": {"mes": 5}}})

    datos = await DashboardApi(api).resumen()

    assert datos["periodo"]["mes"] == 5
    assert backend.consultas[-1] == {}


async def test_listado_devuelve_la_paginacion(api, backend):
    backend.responder("GET", "/viajes", 200, {
        "exito": True, "datos": [{"id": 1}], "paginacion": {"total": 1, "pagina": 1, "limite": 20, "total_paginas": 1},
    })

    cuerpo = await ViajesApi(api).listar({"estado": "PLANIFICADO"})

    assert cuerpo["paginacion"]["total"] == 1
