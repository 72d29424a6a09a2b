from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from flota.core.estados import ModalidadPago
from flota.modules.dataservice.models.catalogos import EstadoRegistro, EstadoVehiculo


class ChoferCreate(BaseModel):
    nombres: str = Field(..., min_length=1, max_length=100)
    apellidos: str = Field(..., min_length=1, max_length=100)
    documento: Optional[str] = None
    telefono: Optional[str] = None
    numero_licencia: Optional[str] = None
    fecha_vencimiento_licencia: Optional[date] = None
    modalidad_pago: ModalidadPago = ModalidadPago.POR_VIAJE
    sueldo_mensual: Optional[Decimal] = Field(None, ge=0)


class ChoferUpdate(BaseModel):
    nombres: Optional[str] = Field(None, min_length=1, max_length=100)
    apellidos: Optional[str] = Field(None, min_length=1, max_length=100)
    documento: Optional[str] = None
    telefono: Optional[str] = None
    numero_licencia: Optional[str] = None
    fecha_vencimiento_licencia: Optional[date] = None
    modalidad_pago: Optional[ModalidadPago] = None
    sueldo_mensual: Optional[Decimal] = Field(None, ge=0)
    estado: Optional[EstadoRegistro] = None


class VehiculoCreate(BaseModel):
    placa: str = Field(..., min_length=3, max_length=10)
    marca: Optional[str] = None
    modelo: Optional[str] = None
    anio: Optional[int] = Field(None, ge=1950, le=2100)
    capacidad_toneladas: Optional[float] = Field(None, ge=0)
    kilometraje_actual: float = Field(default=0, ge=0)
    fecha_vencimiento_soat: Optional[date] = None
    fecha_vencimiento_seguro: Optional[date] = None
    fecha_vencimiento_matricula: Optional[date] = None


class VehiculoUpdate(BaseModel):
    placa: Optional[str] = Field(None, min_length=3, max_length=10)
    marca: Optional[str] = None
    modelo: Optional[str] = None
    anio: Optional[int] = Field(None, ge=1950, le=2100)
    capacidad_toneladas: Optional[float] = Field(None, ge=0)
    kilometraje_actual: Optional[float] = Field(None, ge=0)
    fecha_vencimiento_soat: Optional[date] = None
    fecha_vencimiento_seguro: Optional[date] = None
    fecha_vencimiento_matricula: Optional[date] = None
    estado: Optional[EstadoVehiculo] = None


class ClienteCreate(BaseModel):
    nombre_razon_social: str = Field(..., min_length=1, max_length=200)
    identificacion: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    direccion: Optional[str] = None


class ClienteUpdate(BaseModel):
    nombre_razon_social: Optional[str] = Field(None, min_length=1, max_length=200)
    identificacion: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    direccion: Optional[str] = None
    estado: Optional[EstadoRegistro] = None


class MaterialCreate(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=100)
    descripcion: Optional[str] = None
    unidad_medida: Optional[str] = None


class MaterialUpdate(BaseModel):
    nombre: Optional[str] = Field(None, min_length=1, max_length=100)
    descripcion: Optional[str] = None
    unidad_medida: Optional[str] = None
    estado: Optional[EstadoRegistro] = None
