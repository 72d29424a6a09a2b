def test_login_correcto(api, admin):
    response = api.post("/auth/login", json={"usuario": "admin", "password": "admin-clave"})

    assert response.status_code == 200
    cuerpo = response.json()
    assert cuerpo["exito"] is True
    assert cuerpo["token"]
    assert cuerpo["usuario"]["rol"] == "ADMIN"
    assert "hashed_password" not in cuerpo["usuario"]


def test_login_con_credenciales_incorrectas(api, admin):
    response = api.post("/auth/login", json={"usuario": "admin", "password": "otra"})

    assert response.status_code == 401
    assert response.json() == {"exito": False, "mensaje": "Credenciales incorrectas"}


def test_perfil_con_token(api, auditor_headers):
    response = api.get("/auth/perfil", headers=auditor_headers)
    assert response.status_code == 200
    assert response.json()["datos"]["username"] == "auditor"


def test_token_invalido(api, db):
    response = api.get("/auth/perfil", headers={"Authorization": "Bearer no-es-un-token"})
    assert response.status_code == 401


def test_solo_admin_crea_usuarios(api, admin_headers, auditor_headers):
    nuevo = {"email": "ops@flota.test", "username": "ops", "password": "secreta1", "full_name": "Operaciones", "rol": "AUDITOR"}

    assert api.post("/auth/usuarios", json=nuevo, headers=auditor_headers).status_code == 403
    response = api.post("/auth/usuarios", json=nuevo, headers=admin_headers)

    assert response.status_code == 201
    assert response.json()["datos"]["rol"] == "AUDITOR"
    assert api.post("/auth/usuarios", json=nuevo, headers=admin_headers).status_code == 400
