from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from flota.core.estados import EstadoViaje
from flota.modules.viajes.model import DIAS_CREDITO_VALIDOS


class ViajeCreate(BaseModel):
    vehiculo_id: int
    chofer_id: int
    cliente_id: int
    material_id: int
    origen: str = Field(..., min_length=3, description="Al menos 3 caracteres")
    destino: str = Field(..., min_length=3, description="Al menos 3 caracteres")
    fecha_salida: datetime
    fecha_llegada_estimada: Optional[datetime] = None
    kilometros_estimados: Optional[float] = Field(None, ge=0)
    tarifa: Decimal = Field(..., gt=0)
    monto_pago_chofer: Optional[Decimal] = Field(None, ge=0)
    dias_credito: int = 0
    observaciones: Optional[str] = None

    @field_validator("dias_credito")
    @classmethod
    def validar_dias_credito(cls, value: int) -> int:
        if value not in DIAS_CREDITO_VALIDOS:
            raise ValueError("Los días de crédito deben ser 0, 15, 30, 60 o 90 días")
        return value

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "vehiculo_id": 1,
            "chofer_id": 1,
            "cliente_id": 1,
            "material_id": 1,
            "origen": "Quito",
            "destino": "Guayaquil",
            "fecha_salida": "2025-03-10T06:00:00",
            "fecha_llegada_estimada": "2025-03-10T16:00:00",
            "kilometros_estimados": 420,
            "tarifa": 500.00,
            "monto_pago_chofer": 100.00,
            "dias_credito": 30,
        }
    })


class ViajeUpdate(BaseModel):
    vehiculo_id: Optional[int] = None
    chofer_id: Optional[int] = None
    cliente_id: Optional[int] = None
    origen: Optional[str] = Field(None, min_length=3)
    destino: Optional[str] = Field(None, min_length=3)
    fecha_salida: Optional[datetime] = None
    fecha_llegada_estimada: Optional[datetime] = None
    kilometros_estimados: Optional[float] = Field(None, ge=0)
    monto_pago_chofer: Optional[Decimal] = Field(None, ge=0)
    observaciones: Optional[str] = None


class CambioEstado(BaseModel):
    estado: EstadoViaje
    fecha_llegada_real: Optional[datetime] = None
    kilometros_reales: Optional[float] = Field(None, gt=0)


class PagoCliente(BaseModel):
    monto: Decimal = Field(..., gt=0, description="Monto recibido del cliente")


class ViajeFilter(BaseModel):
    estado: Optional[EstadoViaje] = None
    estado_pago_cliente: Optional[str] = None
    vehiculo_id: Optional[int] = None
    chofer_id: Optional[int] = None
    cliente_id: Optional[int] = None
    fecha_desde: Optional[datetime] = None
    fecha_hasta: Optional[datetime] = None
