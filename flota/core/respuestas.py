import logging
from math import ceil
from typing import Any, List, Optional

from bson import ObjectId
from bson.decimal128 import Decimal128
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

CODIFICADORES = {
    ObjectId: str,
    Decimal128: lambda d: float(d.to_decimal()),
}


def respuesta(datos: Any = None, mensaje: Optional[str] = None) -> dict:
    """Sobre estándar {exito, mensaje?, datos?}"""
    cuerpo = {"exito": True}
    if mensaje:
        cuerpo["mensaje"] = mensaje
    if datos is not None:
        cuerpo["datos"] = datos
    return jsonable_encoder(cuerpo, custom_encoder=CODIFICADORES)


def respuesta_paginada(items: List[Any], total: int, pagina: int, limite: int) -> dict:
    return jsonable_encoder({
        "exito": True,
        "datos": items,
        "paginacion": {
            "total": total,
            "pagina": pagina,
            "limite": limite,
            "total_paginas": ceil(total / limite) if limite > 0 else 0,
        },
    }, custom_encoder=CODIFICADORES)


def _error(status_code: int, mensaje: str, errores: Optional[list] = None, headers=None) -> JSONResponse:
    cuerpo = {"exito": False, "mensaje": mensaje}
    if errores:
        cuerpo["errores"] = errores
    return JSONResponse(status_code=status_code, content=cuerpo, headers=headers)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    mensaje = exc.detail if isinstance(exc.detail, str) else "Error en la solicitud"
    return _error(exc.status_code, mensaje, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errores = []
    for e in exc.errors():
        campo = ".".join(str(p) for p in e.get("loc", ()) if p not in ("body", "query", "path", "form"))
        errores.append({"campo": campo, "mensaje": e.get("msg", "Valor inválido")})
    return _error(400, "Error de validación", errores)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Error no controlado en {request.method} {request.url.path}: {exc}")
    return _error(500, "Error interno del servidor")


def registrar_manejadores(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
