from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Tuple


def a_datetime(valor) -> Optional[datetime]:
    """date -> datetime a medianoche; MongoDB no guarda date"""
    if valor is None:
        return None
    if isinstance(valor, datetime):
        # Se guarda en hora local sin zona, igual que datetime.now()
        return valor.astimezone().replace(tzinfo=None) if valor.tzinfo else valor
    if isinstance(valor, date):
        return datetime.combine(valor, time.min)
    return a_datetime(datetime.fromisoformat(str(valor)))


def fechas_a_datetime(documento: dict, campos: Iterable[str]) -> dict:
    for campo in campos:
        if documento.get(campo) is not None:
            documento[campo] = a_datetime(documento[campo])
    return documento


def fechas_a_date(documento: dict, campos: Iterable[str]) -> dict:
    for campo in campos:
        if isinstance(documento.get(campo), datetime):
            documento[campo] = documento[campo].date()
    return documento


def dias_hasta(fecha, hoy: Optional[date] = None) -> Optional[int]:
    """Días restantes hasta `fecha` (negativo si ya pasó)"""
    if fecha is None:
        return None
    hoy = hoy or date.today()
    if isinstance(fecha, datetime):
        fecha = fecha.date()
    return (fecha - hoy).days


def rango_mes(anio: int, mes: int) -> Tuple[datetime, datetime]:
    """Primer y último instante del mes"""
    if not 1 <= mes <= 12:
        raise ValueError("El mes debe estar entre 1 y 12")
    inicio = datetime(anio, mes, 1)
    siguiente = datetime(anio + 1, 1, 1) if mes == 12 else datetime(anio, mes + 1, 1)
    return inicio, siguiente - timedelta(microseconds=1)
