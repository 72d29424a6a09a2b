import logging
from typing import Optional, Type
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from flota.core.database import get_database
from flota.core.respuestas import respuesta, respuesta_paginada
from flota.modules.auth.utils.dependencies import puede_escribir
from flota.modules.dataservice.schemas.catalogos_schema import (
    ChoferCreate, ChoferUpdate, ClienteCreate, ClienteUpdate,
    MaterialCreate, MaterialUpdate, VehiculoCreate, VehiculoUpdate,
)
from flota.modules.dataservice.services.base_service import CatalogoService
from flota.modules.dataservice.services.catalogos_service import (
    ChoferService, ClienteService, MaterialService, VehiculoService,
)

logger = logging.getLogger(__name__)


def crear_router(
    prefix: str,
    tag: str,
    nombre: str,
    service_cls: Type[CatalogoService],
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("")
    def listar(
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=20, ge=1, le=100),
        estado: Optional[str] = Query(None, description="Filtrar por estado"),
        busqueda: Optional[str] = Query(None, description="Texto libre"),
    ):
        service = service_cls(get_database())
        resultado = service.get_all(estado, busqueda, page, limit)
        return respuesta_paginada(resultado["items"], resultado["total"], page, limit)

    @router.get("/{registro_id}")
    def obtener(registro_id: int):
        service = service_cls(get_database())
        registro = service.get_by_id(registro_id)
        if not registro:
            raise HTTPException(status_code=404, detail=f"{nombre} no encontrado")
        return respuesta(registro)

    @router.post("", status_code=201)
    def crear(datos: create_schema, current_user: dict = Depends(puede_escribir)):
        service = service_cls(get_database())
        try:
            creado = service.create(datos.model_dump(), current_user)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return respuesta(creado, f"{nombre} creado")

    @router.put("/{registro_id}")
    def actualizar(registro_id: int, datos: update_schema, current_user: dict = Depends(puede_escribir)):
        service = service_cls(get_database())
        try:
            actualizado = service.update(registro_id, datos.model_dump(), current_user)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if not actualizado:
            raise HTTPException(status_code=404, detail=f"{nombre} no encontrado")
        return respuesta(actualizado, f"{nombre} actualizado")

    @router.delete("/{registro_id}")
    def eliminar(registro_id: int, current_user: dict = Depends(puede_escribir)):
        service = service_cls(get_database())
        try:
            eliminado = service.delete(registro_id, current_user)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if not eliminado:
            raise HTTPException(status_code=404, detail=f"{nombre} no encontrado")
        return respuesta(mensaje=f"{nombre} eliminado")

    return router


choferes_router = crear_router("/choferes", "Choferes", "Chofer", ChoferService, ChoferCreate, ChoferUpdate)
vehiculos_router = crear_router("/vehiculos", "Vehículos", "Vehículo", VehiculoService, VehiculoCreate, VehiculoUpdate)
clientes_router = crear_router("/clientes", "Clientes", "Cliente", ClienteService, ClienteCreate, ClienteUpdate)
materiales_router = crear_router("/materiales", "Materiales", "Material", MaterialService, MaterialCreate, MaterialUpdate)
