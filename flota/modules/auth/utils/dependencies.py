from typing import List, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from flota.core.database import get_database
from flota.core.estados import Rol
from flota.modules.auth.utils.security import decode_token
from flota.modules.auth.services.user_service import UserService

# Sin auto_error: la ausencia de token se responde 401 aquí mismo
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
):
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No autenticado"
        )

    payload = decode_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido o expirado"
        )

    username = payload.get("sub")
    if username is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido"
        )

    db = get_database()
    user = UserService(db).get_user_by_username(username)

    if user is None or not user.get("is_active", True):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuario no encontrado"
        )

    return user


def require_role(allowed_roles: List[Rol]):
    permitidos = {Rol(r).value for r in allowed_roles}

    def role_checker(current_user: dict = Depends(get_current_user)):
        if current_user.get("rol") not in permitidos:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="No tiene permisos para realizar esta acción"
            )
        return current_user

    return role_checker


puede_leer = require_role([Rol.ADMIN, Rol.AUDITOR])
puede_escribir = require_role([Rol.ADMIN])
solo_auditor = require_role([Rol.AUDITOR])
