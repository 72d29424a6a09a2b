from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from flota.core.estados import ModalidadPago


class EstadoRegistro(str, Enum):
    ACTIVO = "ACTIVO"
    INACTIVO = "INACTIVO"


class EstadoVehiculo(str, Enum):
    ACTIVO = "ACTIVO"
    EN_RUTA = "EN_RUTA"
    EN_MANTENIMIENTO = "EN_MANTENIMIENTO"
    INACTIVO = "INACTIVO"


class Chofer(BaseModel):
    nombres: str = Field(..., min_length=1, max_length=100)
    apellidos: str = Field(..., min_length=1, max_length=100)
    documento: Optional[str] = Field(None, description="Cédula o DNI")
    telefono: Optional[str] = None
    numero_licencia: Optional[str] = None
    fecha_vencimiento_licencia: Optional[date] = None
    modalidad_pago: ModalidadPago = Field(default=ModalidadPago.POR_VIAJE)
    sueldo_mensual: Optional[Decimal] = Field(None, ge=0, description="Solo para modalidad MENSUAL")
    estado: EstadoRegistro = EstadoRegistro.ACTIVO
    fecha_registro: datetime = Field(default_factory=datetime.now)


class Vehiculo(BaseModel):
    placa: str = Field(..., min_length=3, max_length=10)
    marca: Optional[str] = None
    modelo: Optional[str] = None
    anio: Optional[int] = Field(None, ge=1950, le=2100)
    capacidad_toneladas: Optional[float] = Field(None, ge=0)
    kilometraje_actual: float = Field(default=0, ge=0)
    fecha_vencimiento_soat: Optional[date] = None
    fecha_vencimiento_seguro: Optional[date] = None
    fecha_vencimiento_matricula: Optional[date] = None
    estado: EstadoVehiculo = EstadoVehiculo.ACTIVO
    fecha_registro: datetime = Field(default_factory=datetime.now)


class Cliente(BaseModel):
    nombre_razon_social: str = Field(..., min_length=1, max_length=200)
    identificacion: Optional[str] = Field(None, description="RUC o cédula")
    telefono: Optional[str] = None
    email: Optional[str] = None
    direccion: Optional[str] = None
    estado: EstadoRegistro = EstadoRegistro.ACTIVO
    fecha_registro: datetime = Field(default_factory=datetime.now)


class Material(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=100)
    descripcion: Optional[str] = None
    unidad_medida: Optional[str] = None
    estado: EstadoRegistro = EstadoRegistro.ACTIVO
    fecha_registro: datetime = Field(default_factory=datetime.now)
