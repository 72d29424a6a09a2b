from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from flota.core.estados import EstadoPagoCliente, EstadoViaje

DIAS_CREDITO_VALIDOS = (0, 15, 30, 60, 90)
CAMPOS_MONTO = ("tarifa", "monto_pagado_cliente", "monto_pago_chofer")


class Viaje(BaseModel):
    vehiculo_id: int
    chofer_id: int
    cliente_id: int
    material_id: int
    origen: str = Field(..., min_length=3)
    destino: str = Field(..., min_length=3)

    fecha_salida: datetime
    fecha_llegada_estimada: Optional[datetime] = None
    fecha_llegada_real: Optional[datetime] = None
    kilometros_estimados: Optional[float] = Field(None, ge=0)
    kilometros_reales: Optional[float] = Field(None, ge=0)

    tarifa: Decimal = Field(..., gt=0, description="Monto facturable al cliente, fijo desde la creación")
    dias_credito: int = 0
    fecha_limite_pago: Optional[datetime] = None
    monto_pagado_cliente: Decimal = Decimal("0")
    estado_pago_cliente: EstadoPagoCliente = EstadoPagoCliente.PENDIENTE

    monto_pago_chofer: Optional[Decimal] = Field(None, ge=0, description="Solo choferes POR_VIAJE")

    estado: EstadoViaje = EstadoViaje.PLANIFICADO
    observaciones: Optional[str] = None
    fecha_registro: datetime = Field(default_factory=datetime.now)
