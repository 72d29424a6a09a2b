from flota.core.config import settings
from flota.core.seed_data import SeedService


def test_seed_crea_admin_y_auditor_una_vez(db):
    seed = SeedService(db)

    assert seed.create_initial_data() == {"success": True, "counts": {"users": 2}}
    assert seed.create_initial_data()["counts"]["users"] == 0
    assert seed.check_existing_data() == {"users": 2}
    roles = {u["username"]: u["rol"] for u in db["users"].find()}
    assert roles == {settings.ADMIN_USERNAME: "ADMIN", settings.AUDITOR_USERNAME: "AUDITOR"}


def test_health(api):
    assert api.get("/health").json() == {"status": "ok"}


def test_estadisticas_mensuales(api, admin_headers, nuevo_viaje, db):
    viaje = nuevo_viaje(tarifa="750.00")
    api.patch(f"/viajes/{viaje['id']}/estado", json={"estado": "EN_CURSO"}, headers=admin_headers)
    api.patch(f"/viajes/{viaje['id']}/estado", json={"estado": "COMPLETADO"}, headers=admin_headers)
    salida = db["viajes"].find_one({"_id": viaje["id"]})["fecha_salida"]

    response = api.get(
        "/viajes/estadisticas/mensuales",
        params={"anio": salida.year, "mes": salida.month},
        headers=admin_headers,
    )

    datos = response.json()["datos"]
    assert datos["total_viajes"] == 1
    assert datos["viajes_completados"] == 1
    assert datos["ingresos_totales"] == 750.0
