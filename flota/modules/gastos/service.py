import logging
from typing import List, Optional

from flota.core.estados import ESTADOS_ACTIVOS
from flota.core.fechas import a_datetime
from flota.core.montos import CERO, a_decimal, montos_a_mongo, montos_desde_mongo
from flota.core.secuencias import siguiente_id
from flota.modules.auditoria.service import AuditoriaService
from flota.modules.dataservice.services.base_service import sin_enums
from flota.modules.gastos.model import GastoViaje

logger = logging.getLogger(__name__)


class GastoViajeService:
    def __init__(self, db):
        self.db = db
        self.collection = db["gastos_viaje"]
        self.viajes_collection = db["viajes"]
        self.auditoria = AuditoriaService(db)

    def _prepare_response(self, gasto: dict) -> dict:
        gasto["id"] = gasto.pop("_id")
        return montos_desde_mongo(gasto, ("monto",))

    def listar_por_viaje(self, viaje_id: int) -> Optional[List[dict]]:
        if not self.viajes_collection.find_one({"_id": viaje_id}, {"_id": 1}):
            return None
        return [
            self._prepare_response(g)
            for g in self.collection.find({"viaje_id": viaje_id}).sort("fecha", -1)
        ]

    def crear(self, viaje_id: int, datos: dict, comprobante: Optional[dict] = None, usuario: Optional[dict] = None) -> Optional[dict]:
        try:
            viaje = self.viajes_collection.find_one({"_id": viaje_id}, {"estado": 1})
            if not viaje:
                return None

            if viaje.get("estado") not in [e.value for e in ESTADOS_ACTIVOS]:
                raise ValueError("Solo se pueden registrar gastos en viajes PLANIFICADO o EN_CURSO")

            if a_decimal(datos.get("monto")) <= CERO:
                raise ValueError("El monto debe ser mayor a 0")

            datos = {k: v for k, v in datos.items() if v is not None}
            if "fecha" in datos:
                datos["fecha"] = a_datetime(datos["fecha"])

            gasto = sin_enums(GastoViaje(viaje_id=viaje_id, comprobante=comprobante, **datos).model_dump())
            gasto["_id"] = siguiente_id(
                counters_collection=self.db["counters"],
                target_collection=self.collection,
                sequence_name="gastos_viaje",
            )
            self.collection.insert_one(montos_a_mongo(gasto, ("monto",)))

            creado = self._prepare_response(self.collection.find_one({"_id": gasto["_id"]}))
            self.auditoria.registrar(usuario, "CREAR", "gasto_viaje", creado["id"], datos_nuevos=creado)
            return creado

        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error al crear gasto del viaje {viaje_id}: {str(e)}")
            raise
