from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class TipoGasto(str, Enum):
    COMBUSTIBLE = "COMBUSTIBLE"
    PEAJE = "PEAJE"
    ALIMENTACION = "ALIMENTACION"
    HOSPEDAJE = "HOSPEDAJE"
    MULTA = "MULTA"
    OTRO = "OTRO"


class MetodoPago(str, Enum):
    EFECTIVO = "EFECTIVO"
    TRANSFERENCIA = "TRANSFERENCIA"
    TARJETA = "TARJETA"
    OTRO = "OTRO"


class GastoViaje(BaseModel):
    viaje_id: int
    tipo_gasto: TipoGasto
    monto: Decimal = Field(..., gt=0)
    fecha: datetime = Field(default_factory=datetime.now)
    metodo_pago: MetodoPago = MetodoPago.EFECTIVO
    descripcion: Optional[str] = Field(None, max_length=500)
    comprobante: Optional[dict] = None
    fecha_registro: datetime = Field(default_factory=datetime.now)
