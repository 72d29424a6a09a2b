import logging
import re
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel

from flota.core.fechas import fechas_a_date, fechas_a_datetime
from flota.core.montos import montos_a_mongo, montos_desde_mongo
from flota.core.secuencias import siguiente_id
from flota.modules.auditoria.service import AuditoriaService

logger = logging.getLogger(__name__)


def safe_regex(value: Optional[str]):
    """Búsqueda por texto sin interpretar caracteres especiales"""
    if not value:
        return None
    value = value.strip()
    if not value:
        return None
    return {"$regex": re.escape(value), "$options": "i"}


def sin_enums(data: dict) -> dict:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}


class CatalogoService:
    """CRUD común de los catálogos que referencia un viaje"""

    coleccion: str = ""
    entidad: str = ""
    modelo: Type[BaseModel] = None
    campos_fecha: Tuple[str, ...] = ()
    campos_monto: Tuple[str, ...] = ()
    campos_busqueda: Tuple[str, ...] = ()
    orden: str = "_id"

    def __init__(self, db):
        self.db = db
        self.collection = db[self.coleccion]
        self.auditoria = AuditoriaService(db)

    def _to_mongo(self, data: dict) -> dict:
        data = sin_enums(data)
        fechas_a_datetime(data, self.campos_fecha)
        montos_a_mongo(data, self.campos_monto)
        return data

    def _prepare_response(self, documento: Optional[dict]) -> Optional[dict]:
        if not documento:
            return None
        documento["id"] = documento.pop("_id")
        fechas_a_date(documento, self.campos_fecha)
        montos_desde_mongo(documento, self.campos_monto)
        return documento

    def _validar(self, data: dict, registro_id: Optional[int] = None) -> None:
        """Reglas propias de cada catálogo; lanza ValueError"""

    def create(self, data: dict, usuario: Optional[dict] = None) -> dict:
        try:
            self._validar(data)
            nuevo_id = siguiente_id(
                counters_collection=self.db["counters"],
                target_collection=self.collection,
                sequence_name=self.coleccion,
            )
            documento = self._to_mongo(self.modelo(**data).model_dump())
            documento["_id"] = nuevo_id
            self.collection.insert_one(documento)

            creado = self.get_by_id(nuevo_id)
            self.auditoria.registrar(usuario, "CREAR", self.entidad, nuevo_id, datos_nuevos=creado)
            return creado

        except Exception as e:
            logger.error(f"Error al crear {self.entidad}: {str(e)}")
            raise

    def get_by_id(self, registro_id: int) -> Optional[dict]:
        return self._prepare_response(self.collection.find_one({"_id": registro_id}))

    def get_all(
        self,
        estado: Optional[str] = None,
        busqueda: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if estado:
            query["estado"] = estado
        regex = safe_regex(busqueda)
        if regex and self.campos_busqueda:
            query["$or"] = [{campo: regex} for campo in self.campos_busqueda]

        total = self.collection.count_documents(query)
        documentos = list(
            self.collection.find(query)
            .sort(self.orden, 1)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        return {
            "items": [self._prepare_response(d) for d in documentos],
            "total": total,
        }

    def update(self, registro_id: int, update_data: dict, usuario: Optional[dict] = None) -> Optional[dict]:
        try:
            anterior = self.get_by_id(registro_id)
            if not anterior:
                return None

            update_dict = {k: v for k, v in update_data.items() if v is not None}
            if not update_dict:
                return anterior

            self._validar(update_dict, registro_id)
            self.collection.update_one(
                {"_id": registro_id},
                {"$set": self._to_mongo(update_dict)}
            )

            actualizado = self.get_by_id(registro_id)
            self.auditoria.registrar(
                usuario, "EDITAR", self.entidad, registro_id,
                datos_anteriores=anterior, datos_nuevos=actualizado,
            )
            return actualizado

        except Exception as e:
            logger.error(f"Error al actualizar {self.entidad} {registro_id}: {str(e)}")
            raise

    def delete(self, registro_id: int, usuario: Optional[dict] = None) -> bool:
        anterior = self.get_by_id(registro_id)
        if not anterior:
            return False

        campo_viaje = f"{self.entidad}_id"
        if self.db["viajes"].count_documents({campo_viaje: registro_id}, limit=1):
            raise ValueError(f"No se puede eliminar: el {self.entidad} tiene viajes registrados")

        self.collection.delete_one({"_id": registro_id})
        self.auditoria.registrar(usuario, "ELIMINAR", self.entidad, registro_id, datos_anteriores=anterior)
        return True
