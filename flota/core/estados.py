from enum import Enum


class EstadoViaje(str, Enum):
    PLANIFICADO = "PLANIFICADO"
    EN_CURSO = "EN_CURSO"
    COMPLETADO = "COMPLETADO"
    CANCELADO = "CANCELADO"


class EstadoPagoCliente(str, Enum):
    PENDIENTE = "PENDIENTE"
    PARCIAL = "PARCIAL"
    PAGADO = "PAGADO"


class EstadoPagoChofer(str, Enum):
    PENDIENTE = "PENDIENTE"
    PAGADO = "PAGADO"


class ModalidadPago(str, Enum):
    POR_VIAJE = "POR_VIAJE"
    MENSUAL = "MENSUAL"


class Rol(str, Enum):
    ADMIN = "ADMIN"
    AUDITOR = "AUDITOR"


TRANSICIONES_VALIDAS = {
    EstadoViaje.PLANIFICADO: (EstadoViaje.EN_CURSO, EstadoViaje.CANCELADO),
    EstadoViaje.EN_CURSO: (EstadoViaje.COMPLETADO, EstadoViaje.CANCELADO),
    EstadoViaje.COMPLETADO: (),
    EstadoViaje.CANCELADO: (),
}

ESTADOS_ACTIVOS = (EstadoViaje.PLANIFICADO, EstadoViaje.EN_CURSO)


def transicion_permitida(actual, nuevo) -> bool:
    return EstadoViaje(nuevo) in TRANSICIONES_VALIDAS[EstadoViaje(actual)]
