import json

from flota.cliente.sesion import SessionManager


def test_sesion_persiste_y_se_hidrata(tmp_path):
    ruta = str(tmp_path / "sesion.json")
    SessionManager(ruta).iniciar("tok", {"username": "admin", "rol": "ADMIN"})

    sesion = SessionManager(ruta)

    assert sesion.hidratar() is True
    assert sesion.token == "tok"
    assert sesion.can_write is True
    assert sesion.es_auditor is False


def test_cerrar_borra_el_archivo(tmp_path):
    ruta = tmp_path / "sesion.json"
    sesion = SessionManager(str(ruta))
    sesion.iniciar("tok", {"rol": "AUDITOR"})

    sesion.cerrar()

    assert not ruta.exists()
    assert sesion.autenticado is False
    assert sesion.rol is None


def test_archivo_ilegible_se_descarta(tmp_path):
    ruta = tmp_path / "sesion.json"
    ruta.write_text("{no es json", encoding="utf-8")

    assert SessionManager(str(ruta)).hidratar() is False
    assert not ruta.exists()


def test_archivo_incompleto_no_autentica(tmp_path):
    ruta = tmp_path / "sesion.json"
    ruta.write_text(json.dumps({"token": "tok"}), encoding="utf-8")

    sesion = SessionManager(str(ruta))

    assert sesion.hidratar() is False
    assert sesion.autenticado is False


def test_sin_archivo_configurado():
    sesion = SessionManager()
    sesion.iniciar("tok", {"rol": "ADMIN"})
    assert sesion.hidratar() is False
    assert sesion.can_write is True
