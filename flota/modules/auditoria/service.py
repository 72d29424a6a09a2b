import logging
from datetime import datetime
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder

from flota.core.respuestas import CODIFICADORES
from flota.core.secuencias import siguiente_id

logger = logging.getLogger(__name__)

ACCIONES = ("CREAR", "EDITAR", "ELIMINAR")


def _usuario_id(usuario: Any) -> Optional[str]:
    if not usuario:
        return None
    if isinstance(usuario, dict):
        valor = usuario.get("_id", usuario.get("id"))
        return str(valor) if valor is not None else None
    return str(usuario)


def _instantanea(datos: Optional[dict]) -> Optional[dict]:
    if datos is None:
        return None
    return jsonable_encoder(datos, custom_encoder=CODIFICADORES)


class AuditoriaService:
    def __init__(self, db):
        self.db = db
        self.collection = db["auditoria"]

    def registrar(
        self,
        usuario: Any,
        accion: str,
        entidad: str,
        entidad_id: Any,
        datos_anteriores: Optional[dict] = None,
        datos_nuevos: Optional[dict] = None,
    ) -> int:
        if accion not in ACCIONES:
            raise ValueError(f"Acción de auditoría inválida: {accion}")

        registro_id = siguiente_id(
            counters_collection=self.db["counters"],
            target_collection=self.collection,
            sequence_name="auditoria",
        )
        self.collection.insert_one({
            "_id": registro_id,
            "usuario_id": _usuario_id(usuario),
            "usuario": usuario.get("username") if isinstance(usuario, dict) else None,
            "accion": accion,
            "entidad": entidad,
            "entidad_id": entidad_id,
            "datos_anteriores": _instantanea(datos_anteriores),
            "datos_nuevos": _instantanea(datos_nuevos),
            "fecha": datetime.now(),
        })
        logger.info(f"Auditoría {accion} {entidad}#{entidad_id}")
        return registro_id

    def listar(
        self,
        entidad: Optional[str] = None,
        accion: Optional[str] = None,
        usuario_id: Optional[str] = None,
        desde: Optional[datetime] = None,
        hasta: Optional[datetime] = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        query = {}
        if entidad:
            query["entidad"] = entidad
        if accion:
            query["accion"] = accion
        if usuario_id:
            query["usuario_id"] = usuario_id
        if desde or hasta:
            query["fecha"] = {}
            if desde:
                query["fecha"]["$gte"] = desde
            if hasta:
                query["fecha"]["$lte"] = hasta

        total = self.collection.count_documents(query)
        registros = list(
            self.collection.find(query)
            .sort("fecha", -1)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return {"items": [self._formatear(r) for r in registros], "total": total}

    def entidades(self) -> list:
        return sorted(e for e in self.collection.distinct("entidad") if e)

    def obtener(self, registro_id: int) -> Optional[dict]:
        registro = self.collection.find_one({"_id": registro_id})
        return self._formatear(registro) if registro else None

    @staticmethod
    def _formatear(registro: dict) -> dict:
        registro["id"] = registro.pop("_id")
        return registro
