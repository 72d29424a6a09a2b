from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from flota.core.estados import EstadoPagoChofer
from flota.modules.gastos.model import MetodoPago

# Holguras por redondeo al comparar montos de pago
TOLERANCIA_PACTADO = Decimal("0.01")
TOLERANCIA_PARCIAL = Decimal("0.05")


class PagoChofer(BaseModel):
    chofer_id: int
    viaje_id: Optional[int] = None
    monto: Decimal = Field(..., gt=0)
    fecha: datetime = Field(default_factory=datetime.now)
    metodo_pago: MetodoPago = MetodoPago.EFECTIVO
    descripcion: Optional[str] = Field(None, max_length=500)
    estado: EstadoPagoChofer = EstadoPagoChofer.PENDIENTE
    fecha_pago_real: Optional[datetime] = None
    comprobante: Optional[dict] = None
    fecha_registro: datetime = Field(default_factory=datetime.now)
