from decimal import Decimal

import pytest

from flota.core.estados import EstadoPagoCliente
from flota.core.finanzas import (
    SIN_RENTABILIDAD,
    calcular_balance_chofer,
    calcular_resumen_economico,
    estado_pago_para,
    formatear_rentabilidad,
)
from flota.core.montos import a_decimal, formatear_moneda


def _viaje(**cambios):
    viaje = {"id": 7, "tarifa": "500.00", "monto_pago_chofer": "150.00"}
    viaje.update(cambios)
    return viaje


def test_ganancia_descuenta_gastos_y_pagos_pagados_vinculados():
    gastos = [{"monto": "50.00"}, {"monto": "30.00"}]
    pagos = [{"viaje_id": 7, "estado": "PAGADO", "monto": "100.00"}]

    resumen = calcular_resumen_economico(_viaje(), gastos, pagos)

    assert resumen.ingreso == Decimal("500.00")
    assert resumen.gastos == Decimal("180.00")
    assert resumen.ganancia == Decimal("320.00")


def test_pagos_pendientes_o_de_otro_viaje_no_cuentan():
    pagos = [
        {"viaje_id": 7, "estado": "PENDIENTE", "monto": 40},
        {"viaje_id": 8, "estado": "PAGADO", "monto": 60},
        {"viaje_id": None, "estado": "PAGADO", "monto": 900},
        {"viaje_id": 7, "estado": "PAGADO", "monto": 25},
    ]

    resumen = calcular_resumen_economico(_viaje(), [], pagos)
    balance = calcular_balance_chofer(_viaje(), pagos)

    assert resumen.gastos == Decimal("25")
    assert balance.pactado == Decimal("150.00")
    assert balance.pagado == Decimal("25")
    assert balance.pendiente == Decimal("125.00")


@pytest.mark.parametrize("valor", [None, "", "abc", float("nan"), "NaN", "Infinity", True])
def test_montos_invalidos_valen_cero(valor):
    assert a_decimal(valor) == Decimal("0")


def test_montos_invalidos_no_rompen_el_resumen():
    gastos = [{"monto": None}, {"monto": "x"}, {}, {"monto": "10.10"}]
    resumen = calcular_resumen_economico(_viaje(tarifa=None), gastos, [])

    assert resumen.ingreso == Decimal("0")
    assert resumen.ganancia == Decimal("-10.10")


def test_suma_exacta_sin_errores_de_coma_flotante():
    gastos = [{"monto": 0.1}, {"monto": 0.2}]
    resumen = calcular_resumen_economico(_viaje(tarifa="0.30"), gastos, [])
    assert resumen.ganancia == Decimal("0")


def test_rentabilidad_con_tarifa_cero_usa_marcador():
    assert formatear_rentabilidad(Decimal("-50"), Decimal("0")) == SIN_RENTABILIDAD
    assert formatear_rentabilidad(Decimal("320"), None) == SIN_RENTABILIDAD


def test_rentabilidad_porcentaje():
    assert formatear_rentabilidad(Decimal("320"), Decimal("500")) == "64.0%"


@pytest.mark.parametrize("pagado, esperado", [
    ("0", EstadoPagoCliente.PENDIENTE),
    ("0.01", EstadoPagoCliente.PARCIAL),
    ("499.99", EstadoPagoCliente.PARCIAL),
    ("500.00", EstadoPagoCliente.PAGADO),
])
def test_estado_de_pago_del_cliente(pagado, esperado):
    assert estado_pago_para(pagado, "500.00") == esperado


def test_formato_de_moneda_redondea_al_mostrar():
    assert formatear_moneda(Decimal("1234.565")) == "$1,234.57"
    assert formatear_moneda("-20") == "-$20.00"
