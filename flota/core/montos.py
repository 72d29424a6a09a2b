from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Optional
from bson.decimal128 import Decimal128

CERO = Decimal("0")
CENTAVO = Decimal("0.01")


def a_decimal(valor: Any) -> Decimal:
    """Convierte montos de cualquier origen a Decimal; lo inválido vale 0"""
    if valor is None or isinstance(valor, bool):
        return CERO
    if isinstance(valor, Decimal128):
        valor = valor.to_decimal()
    if isinstance(valor, Decimal):
        numero = valor
    elif isinstance(valor, int):
        numero = Decimal(valor)
    elif isinstance(valor, float):
        numero = Decimal(str(valor))
    else:
        texto = str(valor).strip()
        if not texto:
            return CERO
        try:
            numero = Decimal(texto)
        except InvalidOperation:
            return CERO

    if not numero.is_finite():
        return CERO
    return numero


def a_mongo(valor: Any) -> Optional[Decimal128]:
    if valor is None:
        return None
    return Decimal128(a_decimal(valor))


def montos_a_mongo(documento: dict, campos: Iterable[str]) -> dict:
    for campo in campos:
        if campo in documento and documento[campo] is not None:
            documento[campo] = a_mongo(documento[campo])
    return documento


def montos_desde_mongo(documento: dict, campos: Iterable[str]) -> dict:
    for campo in campos:
        if campo in documento and documento[campo] is not None:
            documento[campo] = a_decimal(documento[campo])
    return documento


def redondear(valor: Any) -> Decimal:
    return a_decimal(valor).quantize(CENTAVO, rounding=ROUND_HALF_UP)


def formatear_moneda(valor: Any) -> str:
    """$1,234.56 ; negativos como -$1,234.56"""
    numero = redondear(valor)
    signo = "-" if numero < 0 else ""
    return f"{signo}${abs(numero):,.2f}"
