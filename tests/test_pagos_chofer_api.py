def _pago(api, headers, **datos):
    return api.post("/pagos-choferes", data=datos, headers=headers)


def test_pago_vinculado_no_excede_lo_pactado(api, admin_headers, nuevo_viaje):
    viaje = nuevo_viaje(monto_pago_chofer="100.00")

    primero = _pago(api, admin_headers, chofer_id=viaje["chofer_id"], viaje_id=viaje["id"], monto="60.00")
    excedido = _pago(api, admin_headers, chofer_id=viaje["chofer_id"], viaje_id=viaje["id"], monto="40.02")

    assert primero.status_code == 201
    assert excedido.status_code == 400
    assert "Saldo restante: $40.00" in excedido.json()["mensaje"]


def test_pago_de_viaje_de_otro_chofer(api, admin_headers, catalogo, nuevo_viaje):
    viaje = nuevo_viaje()
    response = _pago(api, admin_headers, chofer_id=catalogo["chofer_mensual_id"], viaje_id=viaje["id"], monto="10")
    assert response.status_code == 400


def test_pago_parcial_genera_saldo_pendiente(api, admin_headers, nuevo_viaje, db):
    viaje = nuevo_viaje(monto_pago_chofer="100.00")
    pago = _pago(api, admin_headers, chofer_id=viaje["chofer_id"], viaje_id=viaje["id"], monto="100.00").json()["datos"]

    response = api.patch(f"/pagos-choferes/{pago['id']}/pagar", data={"monto": "70.00"}, headers=admin_headers)

    assert response.status_code == 200
    pagado = response.json()["datos"]
    assert pagado["estado"] == "PAGADO"
    assert pagado["monto"] == 70.0
    saldo = db["pagos_chofer"].find_one({"descripcion": f"Saldo restante de pago #{pago['id']}"})
    assert saldo["estado"] == "PENDIENTE"
    assert saldo["monto"].to_decimal() == 30
    assert saldo["viaje_id"] == viaje["id"]


def test_no_se_paga_dos_veces(api, admin_headers, catalogo):
    pago = _pago(api, admin_headers, chofer_id=catalogo["chofer_mensual_id"], monto="900").json()["datos"]

    assert api.patch(f"/pagos-choferes/{pago['id']}/pagar", headers=admin_headers).status_code == 200
    segundo = api.patch(f"/pagos-choferes/{pago['id']}/pagar", headers=admin_headers)

    assert segundo.status_code == 400
    assert segundo.json()["mensaje"] == "Este pago ya fue marcado como pagado"


def test_pago_realizado_no_se_elimina(api, admin_headers, catalogo):
    pago = _pago(api, admin_headers, chofer_id=catalogo["chofer_mensual_id"], monto="900").json()["datos"]
    pendiente = _pago(api, admin_headers, chofer_id=catalogo["chofer_mensual_id"], monto="50").json()["datos"]
    api.patch(f"/pagos-choferes/{pago['id']}/pagar", headers=admin_headers)

    assert api.delete(f"/pagos-choferes/{pago['id']}", headers=admin_headers).status_code == 400
    assert api.delete(f"/pagos-choferes/{pendiente['id']}", headers=admin_headers).status_code == 200


def test_resumen_de_chofer_por_viaje(api, admin_headers, nuevo_viaje):
    viaje = nuevo_viaje(monto_pago_chofer="100.00")
    api.patch(f"/viajes/{viaje['id']}/estado", json={"estado": "EN_CURSO"}, headers=admin_headers)
    api.patch(f"/viajes/{viaje['id']}/estado", json={"estado": "COMPLETADO"}, headers=admin_headers)
    generado = api.get("/pagos-choferes", params={"viaje_id": viaje["id"]}, headers=admin_headers).json()["datos"]
    api.patch(f"/pagos-choferes/{generado[0]['id']}/pagar", data={"monto": "40"}, headers=admin_headers)

    resumen = api.get(f"/pagos-choferes/resumen/{viaje['chofer_id']}", headers=admin_headers).json()["datos"]

    assert resumen["modalidad_pago"] == "POR_VIAJE"
    assert resumen["total_generado"] == 100.0
    assert resumen["total_pagado"] == 40.0
    assert resumen["saldo_pendiente"] == 60.0


def test_resumen_de_chofer_inexistente(api, admin_headers, db):
    assert api.get("/pagos-choferes/resumen/77", headers=admin_headers).status_code == 404
