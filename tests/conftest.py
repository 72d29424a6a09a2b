import os
import tempfile
from datetime import date, datetime, timedelta

os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="flota_uploads_")
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.setdefault("DATABASE_NAME", "flota_test")

import mongomock
import pytest
from fastapi.testclient import TestClient

from flota.core.config import settings
from flota.core.database import use_client
from flota.core.estados import ModalidadPago, Rol
from flota.main import app
from flota.modules.auth.services.user_service import UserService
from flota.modules.auth.utils.security import create_access_token
from flota.modules.dataservice.services.catalogos_service import (
    ChoferService, ClienteService, MaterialService, VehiculoService,
)


@pytest.fixture
def db():
    client = mongomock.MongoClient()
    use_client(client)
    yield client[settings.DATABASE_NAME]
    use_client(None)


@pytest.fixture
def api(db):
    return TestClient(app)


def _usuario(db, username: str, rol: Rol) -> dict:
    UserService(db).create_user({
        "email": f"{username}@flota.test",
        "username": username,
        "password": f"{username}-clave",
        "full_name": username.title(),
        "rol": rol.value,
    })
    return UserService(db).get_user_by_username(username)


def _headers(usuario: dict) -> dict:
    token = create_access_token({"sub": usuario["username"], "rol": usuario["rol"]})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(db):
    return _usuario(db, "admin", Rol.ADMIN)


@pytest.fixture
def auditor(db):
    return _usuario(db, "auditor", Rol.AUDITOR)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def auditor_headers(auditor):
    return _headers(auditor)


@pytest.fixture
def catalogo(db):
    """Un registro activo de cada catálogo; ids por nombre"""
    en_un_anio = date.today() + timedelta(days=365)
    chofer = ChoferService(db).create({
        "nombres": "Luis",
        "apellidos": "Andrade",
        "documento": "1712345678",
        "fecha_vencimiento_licencia": en_un_anio,
        "modalidad_pago": ModalidadPago.POR_VIAJE,
    })
    mensual = ChoferService(db).create({
        "nombres": "Rosa",
        "apellidos": "Paredes",
        "documento": "1798765432",
        "modalidad_pago": ModalidadPago.MENSUAL,
        "sueldo_mensual": "900",
    })
    vehiculo = VehiculoService(db).create({
        "placa": "pbc-1234",
        "marca": "Hino",
        "kilometraje_actual": 10000,
        "fecha_vencimiento_soat": en_un_anio,
        "fecha_vencimiento_seguro": en_un_anio,
        "fecha_vencimiento_matricula": en_un_anio,
    })
    segundo_vehiculo = VehiculoService(db).create({"placa": "GSA-5678", "kilometraje_actual": 0})
    cliente = ClienteService(db).create({"nombre_razon_social": "Constructora Andina S.A.", "identificacion": "1790011223001"})
    material = MaterialService(db).create({"nombre": "Arena", "unidad_medida": "m3"})
    return {
        "chofer_id": chofer["id"],
        "chofer_mensual_id": mensual["id"],
        "vehiculo_id": vehiculo["id"],
        "segundo_vehiculo_id": segundo_vehiculo["id"],
        "cliente_id": cliente["id"],
        "material_id": material["id"],
    }


@pytest.fixture
def nuevo_viaje(api, admin_headers, catalogo):
    """Crea viajes vía API; cada llamada sale dos días después de la anterior"""
    salidas = iter(range(1, 100))

    def crear(**cambios) -> dict:
        dias = next(salidas) * 2
        salida = datetime.now().replace(microsecond=0) + timedelta(days=dias)
        payload = {
            "vehiculo_id": catalogo["vehiculo_id"],
            "chofer_id": catalogo["chofer_id"],
            "cliente_id": catalogo["cliente_id"],
            "material_id": catalogo["material_id"],
            "origen": "Quito",
            "destino": "Guayaquil",
            "fecha_salida": salida.isoformat(),
            "fecha_llegada_estimada": (salida + timedelta(hours=10)).isoformat(),
            "kilometros_estimados": 420,
            "tarifa": "500.00",
            "monto_pago_chofer": "100.00",
            "dias_credito": 30,
        }
        payload.update(cambios)
        response = api.post("/viajes", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()["datos"]

    return crear
