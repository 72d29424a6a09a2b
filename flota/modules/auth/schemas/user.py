from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from flota.core.estados import Rol


class LoginRequest(BaseModel):
    usuario: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserCreate(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=6)
    full_name: str
    rol: Rol = Rol.ADMIN


class UserResponse(BaseModel):
    id: str
    email: str
    username: str
    full_name: str
    rol: Rol
    is_active: bool
    created_at: Optional[datetime] = None
