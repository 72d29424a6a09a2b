def test_auditor_consulta_el_registro(api, auditor_headers, catalogo):
    response = api.get("/auditoria", params={"entidad": "vehiculo"}, headers=auditor_headers)

    assert response.status_code == 200
    cuerpo = response.json()
    assert cuerpo["paginacion"]["total"] == 2
    assert {r["accion"] for r in cuerpo["datos"]} == {"CREAR"}

    registro_id = cuerpo["datos"][0]["id"]
    detalle = api.get(f"/auditoria/{registro_id}", headers=auditor_headers)
    assert detalle.json()["datos"]["entidad"] == "vehiculo"


def test_entidades_auditadas(api, auditor_headers, catalogo):
    response = api.get("/auditoria/entidades", headers=auditor_headers)
    assert response.json()["datos"] == ["chofer", "cliente", "material", "vehiculo"]


def test_admin_no_accede_a_auditoria(api, admin_headers):
    response = api.get("/auditoria", headers=admin_headers)
    assert response.status_code == 403
