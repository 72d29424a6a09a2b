from datetime import date, datetime, timedelta

from bson.decimal128 import Decimal128

from flota.modules.alertas.service import AlertaService, prioridad_documento

HOY = date(2025, 6, 1)


def _en(dias: int) -> datetime:
    return datetime.combine(HOY + timedelta(days=dias), datetime.min.time())


def test_prioridad_por_dias_restantes():
    assert prioridad_documento(-4) == "ALTA"
    assert prioridad_documento(7) == "ALTA"
    assert prioridad_documento(8) == "MEDIA"
    assert prioridad_documento(15) == "MEDIA"
    assert prioridad_documento(16) == "BAJA"


def test_documentos_de_vehiculos(db):
    db["vehiculos"].insert_many([
        {"_id": 1, "placa": "PBC-1111", "estado": "ACTIVO",
         "fecha_vencimiento_soat": _en(-2), "fecha_vencimiento_seguro": _en(10), "fecha_vencimiento_matricula": _en(200)},
        {"_id": 2, "placa": "PBC-2222", "estado": "INACTIVO", "fecha_vencimiento_soat": _en(-30)},
        {"_id": 3, "placa": "PBC-3333", "estado": "EN_RUTA", "fecha_vencimiento_matricula": _en(3)},
    ])

    alertas = AlertaService(db).documentos_vehiculos(HOY)

    assert [(a["placa"], a["tipo_documento"]) for a in alertas] == [
        ("PBC-1111", "SOAT"), ("PBC-3333", "MATRICULA"), ("PBC-1111", "SEGURO"),
    ]
    soat, matricula, seguro = alertas
    assert soat["esta_vencido"] is True
    assert soat["mensaje"] == "SOAT VENCIDO hace 2 día(s)"
    assert matricula["mensaje"] == "MATRICULA vence en 3 día(s) - URGENTE"
    assert matricula["prioridad"] == "ALTA"
    assert seguro["prioridad"] == "MEDIA"


def test_licencias_solo_de_choferes_activos(db):
    db["choferes"].insert_many([
        {"_id": 1, "nombres": "Ana", "apellidos": "Vera", "estado": "ACTIVO", "fecha_vencimiento_licencia": _en(12)},
        {"_id": 2, "nombres": "Juan", "apellidos": "Mera", "estado": "INACTIVO", "fecha_vencimiento_licencia": _en(1)},
        {"_id": 3, "nombres": "Eva", "apellidos": "Cano", "estado": "ACTIVO", "fecha_vencimiento_licencia": None},
    ])

    alertas = AlertaService(db).licencias_choferes(HOY)

    assert [(a["nombre"], a["dias_restantes"]) for a in alertas] == [("Ana Vera", 12)]


def test_facturas_vencidas(db):
    db["clientes"].insert_one({"_id": 1, "nombre_razon_social": "Áridos del Sur"})
    base = {"cliente_id": 1, "origen": "Quito", "destino": "Loja", "tarifa": Decimal128("800"),
            "monto_pagado_cliente": Decimal128("300")}
    db["viajes"].insert_many([
        {**base, "_id": 1, "estado": "COMPLETADO", "estado_pago_cliente": "PARCIAL", "fecha_limite_pago": _en(-5)},
        {**base, "_id": 2, "estado": "COMPLETADO", "estado_pago_cliente": "PAGADO", "fecha_limite_pago": _en(-5)},
        {**base, "_id": 3, "estado": "CANCELADO", "estado_pago_cliente": "PENDIENTE", "fecha_limite_pago": _en(-5)},
        {**base, "_id": 4, "estado": "COMPLETADO", "estado_pago_cliente": "PENDIENTE", "fecha_limite_pago": _en(2)},
    ])

    facturas = AlertaService(db).facturas_vencidas(HOY)

    assert len(facturas) == 1
    assert facturas[0]["viaje_id"] == 1
    assert facturas[0]["dias_vencido"] == 5
    assert str(facturas[0]["saldo_pendiente"]) == "500"
    assert facturas[0]["cliente"] == "Áridos del Sur"


def test_viajes_proximos_en_48_horas(db):
    ahora = datetime(2025, 6, 1, 8, 0)
    db["vehiculos"].insert_one({"_id": 1, "placa": "PBC-1111"})
    db["choferes"].insert_one({"_id": 1, "nombres": "Ana", "apellidos": "Vera"})
    db["clientes"].insert_one({"_id": 1, "nombre_razon_social": "Áridos del Sur"})
    base = {"vehiculo_id": 1, "chofer_id": 1, "cliente_id": 1, "origen": "Quito", "destino": "Loja"}
    db["viajes"].insert_many([
        {**base, "_id": 1, "estado": "PLANIFICADO", "fecha_salida": ahora + timedelta(hours=30)},
        {**base, "_id": 2, "estado": "PLANIFICADO", "fecha_salida": ahora + timedelta(hours=60)},
        {**base, "_id": 3, "estado": "EN_CURSO", "fecha_salida": ahora + timedelta(hours=5)},
        {**base, "_id": 4, "estado": "PLANIFICADO", "fecha_salida": ahora + timedelta(hours=2)},
    ])

    proximos = AlertaService(db).viajes_proximos(ahora)

    assert [(v["viaje_id"], v["horas_restantes"]) for v in proximos] == [(4, 2), (1, 30)]
    assert proximos[0]["placa"] == "PBC-1111"
    assert proximos[0]["chofer"] == "Ana Vera"


def test_choferes_con_saldo_alto_y_resumen(db):
    db["choferes"].insert_many([
        {"_id": 1, "nombres": "Ana", "apellidos": "Vera", "estado": "ACTIVO"},
        {"_id": 2, "nombres": "Juan", "apellidos": "Mera", "estado": "ACTIVO"},
    ])
    db["viajes"].insert_many([
        {"_id": 1, "chofer_id": 1, "estado": "COMPLETADO", "monto_pago_chofer": Decimal128("400")},
        {"_id": 2, "chofer_id": 1, "estado": "COMPLETADO", "monto_pago_chofer": Decimal128("300")},
        {"_id": 3, "chofer_id": 2, "estado": "COMPLETADO", "monto_pago_chofer": Decimal128("600")},
    ])
    db["pagos_chofer"].insert_many([
        {"_id": 1, "chofer_id": 1, "viaje_id": 1, "monto": Decimal128("100"), "estado": "PAGADO", "fecha": _en(-3)},
        {"_id": 2, "chofer_id": 2, "viaje_id": 3, "monto": Decimal128("200"), "estado": "PAGADO", "fecha": _en(-3)},
        {"_id": 3, "chofer_id": 2, "viaje_id": None, "monto": Decimal128("900"), "estado": "PENDIENTE", "fecha": _en(4)},
    ])

    alertas = AlertaService(db).obtener_alertas(hoy=HOY, ahora=datetime(2025, 6, 1, 8, 0))

    saldos = alertas["choferes_con_saldo_alto"]
    assert [(s["chofer_id"], str(s["saldo_pendiente"])) for s in saldos] == [(1, "600")]
    mensuales = alertas["pagos_mensuales_pendientes"]
    assert mensuales[0]["dias_para_pago"] == 4
    assert mensuales[0]["descripcion"] == "Pago mensual"
    assert alertas["resumen"]["choferes_saldo"] == 1
    assert alertas["resumen"]["pagos_choferes"] == 1
    assert alertas["resumen"]["total"] == 2


def test_endpoint_de_alertas(api, auditor_headers):
    response = api.get("/alertas", headers=auditor_headers)
    assert response.status_code == 200
    assert response.json()["datos"]["resumen"]["total"] == 0
