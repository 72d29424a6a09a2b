from fastapi import APIRouter, Depends, HTTPException
from flota.core.database import get_database
from flota.core.respuestas import respuesta
from flota.modules.auth.schemas.user import LoginRequest, UserCreate, UserResponse
from flota.modules.auth.services.auth_service import AuthService
from flota.modules.auth.services.user_service import UserService
from flota.modules.auth.utils.dependencies import get_current_user, puede_escribir

router = APIRouter(prefix="/auth", tags=["Autenticación"])


@router.post("/login")
def login(credentials: LoginRequest):
    db = get_database()
    auth_service = AuthService(db)

    return auth_service.login(credentials.usuario, credentials.password)


@router.get("/perfil")
def perfil(current_user: dict = Depends(get_current_user)):
    return respuesta(UserService.to_public(current_user))


@router.post("/usuarios", status_code=201)
def crear_usuario(user: UserCreate, current_user: dict = Depends(puede_escribir)):
    db = get_database()
    user_service = UserService(db)

    try:
        created = user_service.create_user(user.model_dump(mode="json"))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    publico = UserResponse(**UserService.to_public(created)).model_dump()
    return respuesta(publico, "Usuario creado")
