"""
Aritmética del resumen económico de un viaje.

Funciones puras compartidas por el backend (detalle de viaje, reportes) y por
el cliente (modelo de vista del viaje). Todos los montos se acumulan como
Decimal sin redondeo; el redondeo a dos decimales ocurre solo al formatear.
"""
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from flota.core.estados import EstadoPagoChofer, EstadoPagoCliente
from flota.core.montos import CERO, a_decimal

CIEN = Decimal("100")
SIN_RENTABILIDAD = "N/A"


@dataclass(frozen=True)
class ResumenEconomico:
    ingreso: Decimal
    gastos: Decimal
    ganancia: Decimal

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BalanceChofer:
    pactado: Decimal
    pagado: Decimal
    pendiente: Decimal

    def to_dict(self) -> dict:
        return asdict(self)


def _campo(registro: Any, nombre: str, defecto: Any = None) -> Any:
    if isinstance(registro, Mapping):
        return registro.get(nombre, defecto)
    return getattr(registro, nombre, defecto)


def _estado(valor: Any) -> str:
    return getattr(valor, "value", valor) or ""


def sumar_montos(registros: Iterable[Any]) -> Decimal:
    total = CERO
    for registro in registros or ():
        total += a_decimal(_campo(registro, "monto"))
    return total


def pagos_chofer_pagados(pagos: Iterable[Any], viaje_id: Any) -> list:
    """Pagos al chofer en estado PAGADO y vinculados a este viaje"""
    return [
        p for p in (pagos or ())
        if _estado(_campo(p, "estado")) == EstadoPagoChofer.PAGADO.value
        and _campo(p, "viaje_id") is not None
        and _campo(p, "viaje_id") == viaje_id
    ]


def calcular_resumen_economico(viaje: Any, gastos: Iterable[Any], pagos_chofer: Iterable[Any]) -> ResumenEconomico:
    ingreso = a_decimal(_campo(viaje, "tarifa"))
    pagado_chofer = sumar_montos(pagos_chofer_pagados(pagos_chofer, _campo(viaje, "id")))
    total_gastos = sumar_montos(gastos) + pagado_chofer
    return ResumenEconomico(
        ingreso=ingreso,
        gastos=total_gastos,
        ganancia=ingreso - total_gastos,
    )


def calcular_balance_chofer(viaje: Any, pagos_chofer: Iterable[Any]) -> BalanceChofer:
    pactado = a_decimal(_campo(viaje, "monto_pago_chofer"))
    pagado = sumar_montos(pagos_chofer_pagados(pagos_chofer, _campo(viaje, "id")))
    return BalanceChofer(pactado=pactado, pagado=pagado, pendiente=pactado - pagado)


def estado_pago_para(monto_pagado: Any, tarifa: Any) -> EstadoPagoCliente:
    pagado = a_decimal(monto_pagado)
    if pagado >= a_decimal(tarifa) and pagado > CERO:
        return EstadoPagoCliente.PAGADO
    if pagado > CERO:
        return EstadoPagoCliente.PARCIAL
    return EstadoPagoCliente.PENDIENTE


def calcular_rentabilidad(ganancia: Any, tarifa: Any) -> Optional[Decimal]:
    """ganancia / tarifa * 100, o None cuando la tarifa es 0"""
    base = a_decimal(tarifa)
    if base == CERO:
        return None
    return a_decimal(ganancia) / base * CIEN


def formatear_rentabilidad(ganancia: Any, tarifa: Any) -> str:
    porcentaje = calcular_rentabilidad(ganancia, tarifa)
    if porcentaje is None:
        return SIN_RENTABILIDAD
    return f"{porcentaje.quantize(Decimal('0.1'))}%"
