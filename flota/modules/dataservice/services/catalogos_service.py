from typing import Optional

from flota.modules.dataservice.models.catalogos import Chofer, Cliente, EstadoVehiculo, Material, Vehiculo
from flota.modules.dataservice.services.base_service import CatalogoService


class ChoferService(CatalogoService):
    coleccion = "choferes"
    entidad = "chofer"
    modelo = Chofer
    campos_fecha = ("fecha_vencimiento_licencia",)
    campos_monto = ("sueldo_mensual",)
    campos_busqueda = ("nombres", "apellidos", "documento")
    orden = "apellidos"

    def _validar(self, data: dict, registro_id: Optional[int] = None) -> None:
        if data.get("documento"):
            query = {"documento": data["documento"]}
            if registro_id is not None:
                query["_id"] = {"$ne": registro_id}
            if self.collection.find_one(query):
                raise ValueError(f"Ya existe un chofer con el documento {data['documento']}")


class VehiculoService(CatalogoService):
    coleccion = "vehiculos"
    entidad = "vehiculo"
    modelo = Vehiculo
    campos_fecha = (
        "fecha_vencimiento_soat",
        "fecha_vencimiento_seguro",
        "fecha_vencimiento_matricula",
    )
    campos_busqueda = ("placa", "marca", "modelo")
    orden = "placa"

    def _validar(self, data: dict, registro_id: Optional[int] = None) -> None:
        if data.get("placa"):
            data["placa"] = data["placa"].strip().upper()
            query = {"placa": data["placa"]}
            if registro_id is not None:
                query["_id"] = {"$ne": registro_id}
            if self.collection.find_one(query):
                raise ValueError(f"La placa {data['placa']} ya está registrada")

    def cambiar_estado(self, vehiculo_id: int, estado: EstadoVehiculo) -> None:
        self.collection.update_one({"_id": vehiculo_id}, {"$set": {"estado": estado.value}})

    def sumar_kilometraje(self, vehiculo_id: int, kilometros: float) -> None:
        vehiculo = self.collection.find_one({"_id": vehiculo_id}, {"kilometraje_actual": 1})
        if not vehiculo:
            return
        actual = float(vehiculo.get("kilometraje_actual") or 0)
        self.collection.update_one(
            {"_id": vehiculo_id},
            {"$set": {"kilometraje_actual": actual + float(kilometros)}}
        )


class ClienteService(CatalogoService):
    coleccion = "clientes"
    entidad = "cliente"
    modelo = Cliente
    campos_busqueda = ("nombre_razon_social", "identificacion")
    orden = "nombre_razon_social"

    def _validar(self, data: dict, registro_id: Optional[int] = None) -> None:
        if data.get("identificacion"):
            query = {"identificacion": data["identificacion"]}
            if registro_id is not None:
                query["_id"] = {"$ne": registro_id}
            if self.collection.find_one(query):
                raise ValueError(f"Ya existe un cliente con la identificación {data['identificacion']}")


class MaterialService(CatalogoService):
    coleccion = "materiales"
    entidad = "material"
    modelo = Material
    campos_busqueda = ("nombre",)
    orden = "nombre"
