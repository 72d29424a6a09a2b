"""
Modelo de vista del detalle de un viaje.

Se construye a partir del viaje, sus gastos y sus pagos al chofer tal como los
devuelve el backend; no guarda estado propio ni anticipa resultados. El estado
de cobro mostrado es siempre el del servidor.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Optional

from flota.core.estados import EstadoPagoCliente, EstadoViaje, ESTADOS_ACTIVOS, TRANSICIONES_VALIDAS
from flota.core.finanzas import (
    BalanceChofer,
    ResumenEconomico,
    calcular_balance_chofer,
    calcular_resumen_economico,
    formatear_rentabilidad,
)
from flota.core.montos import CERO, a_decimal, formatear_moneda


@dataclass
class VistaViaje:
    viaje: dict
    gastos: List[dict]
    pagos_chofer: List[dict]
    resumen: ResumenEconomico
    balance_chofer: BalanceChofer
    can_write: bool = False

    @classmethod
    def desde_detalle(cls, detalle: dict, can_write: bool = False) -> "VistaViaje":
        """Acepta el cuerpo de GET /viajes/{id}: {viaje: {..., gastos, pagos}, ...}"""
        viaje = dict(detalle.get("viaje", detalle))
        gastos = list(viaje.pop("gastos", None) or [])
        pagos = list(viaje.pop("pagos", None) or [])
        return cls.construir(viaje, gastos, pagos, can_write)

    @classmethod
    def construir(cls, viaje: dict, gastos: List[dict], pagos_chofer: List[dict], can_write: bool = False) -> "VistaViaje":
        return cls(
            viaje=viaje,
            gastos=gastos,
            pagos_chofer=pagos_chofer,
            resumen=calcular_resumen_economico(viaje, gastos, pagos_chofer),
            balance_chofer=calcular_balance_chofer(viaje, pagos_chofer),
            can_write=can_write,
        )

    @property
    def estado(self) -> EstadoViaje:
        return EstadoViaje(self.viaje["estado"])

    @property
    def estado_pago_cliente(self) -> EstadoPagoCliente:
        return EstadoPagoCliente(self.viaje.get("estado_pago_cliente") or EstadoPagoCliente.PENDIENTE.value)

    @property
    def tarifa(self) -> Decimal:
        return a_decimal(self.viaje.get("tarifa"))

    @property
    def monto_pagado_cliente(self) -> Decimal:
        return a_decimal(self.viaje.get("monto_pagado_cliente"))

    @property
    def saldo_pendiente(self) -> Decimal:
        return self.tarifa - self.monto_pagado_cliente

    @property
    def rentabilidad(self) -> str:
        return formatear_rentabilidad(self.resumen.ganancia, self.tarifa)

    def quedara_debiendo(self, monto: Any) -> Optional[Decimal]:
        """Saldo tras un pago tentativo; None cuando el pago salda la deuda"""
        restante = self.saldo_pendiente - a_decimal(monto)
        return restante if restante > CERO else None

    def aviso_pago(self, monto: Any) -> Optional[str]:
        restante = self.quedara_debiendo(monto)
        if restante is None:
            return None
        return f"El cliente quedará debiendo {formatear_moneda(restante)}"

    # Acciones ofrecidas; el servidor vuelve a validar cada una

    @property
    def puede_registrar_pago(self) -> bool:
        return self.can_write and self.estado_pago_cliente != EstadoPagoCliente.PAGADO

    @property
    def puede_iniciar(self) -> bool:
        return self.can_write and EstadoViaje.EN_CURSO in TRANSICIONES_VALIDAS[self.estado]

    @property
    def puede_completar(self) -> bool:
        return self.can_write and EstadoViaje.COMPLETADO in TRANSICIONES_VALIDAS[self.estado]

    @property
    def puede_cancelar(self) -> bool:
        return self.can_write and EstadoViaje.CANCELADO in TRANSICIONES_VALIDAS[self.estado]

    @property
    def puede_agregar_gasto(self) -> bool:
        return self.can_write and self.estado in ESTADOS_ACTIVOS

    def to_dict(self) -> dict:
        return {
            "estado": self.estado.value,
            "estado_pago_cliente": self.estado_pago_cliente.value,
            "resumen_economico": self.resumen.to_dict(),
            "balance_chofer": self.balance_chofer.to_dict(),
            "saldo_pendiente": self.saldo_pendiente,
            "rentabilidad": self.rentabilidad,
        }
