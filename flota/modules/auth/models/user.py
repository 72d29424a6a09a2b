from datetime import datetime
from flota.core.estados import Rol


class UserModel:
    def __init__(
        self,
        email: str,
        username: str,
        hashed_password: str,
        full_name: str,
        rol: str = Rol.ADMIN.value,
        is_active: bool = True,
        created_at: datetime = None,
    ):
        self.email = email
        self.username = username
        self.hashed_password = hashed_password
        self.full_name = full_name
        self.rol = Rol(rol).value
        self.is_active = is_active
        self.created_at = created_at or datetime.now()

    def to_dict(self):
        return {
            "email": self.email,
            "username": self.username,
            "hashed_password": self.hashed_password,
            "full_name": self.full_name,
            "rol": self.rol,
            "is_active": self.is_active,
            "created_at": self.created_at
        }
