from datetime import timedelta
from fastapi import HTTPException, status
from flota.core.config import settings
from flota.modules.auth.utils.security import verify_password, create_access_token
from flota.modules.auth.services.user_service import UserService


class AuthService:
    def __init__(self, db):
        self.db = db
        self.user_service = UserService(db)

    def authenticate_user(self, username: str, password: str):
        user = self.user_service.get_user_by_username(username)

        if not user:
            return None

        if not verify_password(password, user["hashed_password"]):
            return None

        return user

    def login(self, username: str, password: str) -> dict:
        user = self.authenticate_user(username, password)

        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Credenciales incorrectas"
            )

        if not user.get("is_active", True):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Usuario inactivo"
            )

        token = create_access_token(
            data={"sub": user["username"], "rol": user["rol"]},
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )

        return {
            "exito": True,
            "token": token,
            "usuario": UserService.to_public(user),
        }
