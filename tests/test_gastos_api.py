import os

from flota.core.config import settings


def test_gasto_con_comprobante(api, admin_headers, nuevo_viaje, db):
    viaje = nuevo_viaje()

    response = api.post(
        f"/viajes/{viaje['id']}/gastos",
        data={"tipo_gasto": "COMBUSTIBLE", "monto": "85.40", "metodo_pago": "TARJETA", "descripcion": "Diesel"},
        files={"comprobante": ("factura.png", b"\x89PNG\r\n\x1a\nfalso", "image/png")},
        headers=admin_headers,
    )

    assert response.status_code == 201, response.text
    gasto = response.json()["datos"]
    assert gasto["monto"] == 85.4
    assert gasto["tipo_gasto"] == "COMBUSTIBLE"
    comprobante = gasto["comprobante"]
    assert comprobante["nombre_archivo_original"] == "factura.png"
    assert comprobante["url"].startswith("/uploads/gastos/")
    ruta = os.path.join(settings.UPLOAD_DIR, "gastos", os.path.basename(comprobante["url"]))
    assert os.path.exists(ruta)

    listado = api.get(f"/viajes/{viaje['id']}/gastos", headers=admin_headers).json()["datos"]
    assert [g["id"] for g in listado] == [gasto["id"]]


def test_tipo_de_archivo_no_permitido(api, admin_headers, nuevo_viaje, db):
    viaje = nuevo_viaje()

    response = api.post(
        f"/viajes/{viaje['id']}/gastos",
        data={"tipo_gasto": "PEAJE", "monto": "2.50"},
        files={"comprobante": ("script.sh", b"echo hola", "text/x-sh")},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert "Tipo de archivo no permitido" in response.json()["mensaje"]
    assert db["gastos_viaje"].count_documents({}) == 0


def test_no_se_registran_gastos_en_viajes_cerrados(api, admin_headers, nuevo_viaje):
    viaje = nuevo_viaje()
    api.patch(f"/viajes/{viaje['id']}/estado", json={"estado": "CANCELADO"}, headers=admin_headers)

    response = api.post(f"/viajes/{viaje['id']}/gastos", data={"tipo_gasto": "PEAJE", "monto": "2.50"}, headers=admin_headers)

    assert response.status_code == 400
    assert "PLANIFICADO o EN_CURSO" in response.json()["mensaje"]


def test_gasto_de_viaje_inexistente(api, admin_headers, db):
    response = api.post("/viajes/404/gastos", data={"tipo_gasto": "PEAJE", "monto": "2.50"}, headers=admin_headers)
    assert response.status_code == 404


def test_monto_no_positivo(api, admin_headers, nuevo_viaje):
    viaje = nuevo_viaje()
    response = api.post(f"/viajes/{viaje['id']}/gastos", data={"tipo_gasto": "PEAJE", "monto": "0"}, headers=admin_headers)
    assert response.status_code == 400
