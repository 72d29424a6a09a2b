"""
Controlador del ciclo de vida de un viaje en el cliente.

Las validaciones locales solo evitan llamadas inútiles: si fallan no se hace
ninguna petición. Toda mutación exitosa vuelve a pedir el detalle al servidor,
y lo que llegue después de cerrar la vista se ignora.
"""
import inspect
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Optional, Union

from flota.cliente.http import ApiError
from flota.cliente.notificaciones import Notificador
from flota.cliente.resumen import VistaViaje
from flota.cliente.servicios import Comprobante, ViajesApi
from flota.cliente.sesion import SessionManager
from flota.core.estados import EstadoViaje

logger = logging.getLogger(__name__)

Confirmacion = Callable[[str], Union[bool, Awaitable[bool]]]


class ValidacionCliente(Exception):
    """Dato rechazado antes de llegar al servidor"""


def monto_valido(valor: Any) -> Decimal:
    texto = str(valor).strip() if valor is not None else ""
    if not texto:
        raise ValidacionCliente("Ingrese un monto")
    try:
        monto = Decimal(texto)
    except InvalidOperation:
        raise ValidacionCliente("El monto debe ser un número")
    if not monto.is_finite():
        raise ValidacionCliente("El monto debe ser un número")
    if monto <= 0:
        raise ValidacionCliente("El monto debe ser mayor a 0")
    return monto


class ControladorViaje:
    def __init__(
        self,
        viaje_id: int,
        viajes: ViajesApi,
        sesion: SessionManager,
        notificador: Notificador,
        confirmar: Optional[Confirmacion] = None,
    ):
        self.viaje_id = viaje_id
        self.viajes = viajes
        self.sesion = sesion
        self.notificador = notificador
        self.confirmar = confirmar
        self.vista: Optional[VistaViaje] = None
        self.montado = True

    def cerrar(self) -> None:
        self.montado = False

    async def cargar(self) -> Optional[VistaViaje]:
        try:
            detalle = await self.viajes.obtener(self.viaje_id)
        except ApiError as e:
            self._avisar(e)
            return None
        if not self.montado:
            return None
        self.vista = VistaViaje.desde_detalle(detalle, can_write=self.sesion.can_write)
        return self.vista

    async def iniciar(self) -> bool:
        def validar():
            self._exigir(self._vista().puede_iniciar, "El viaje no se puede iniciar")

        return await self._mutar(validar, lambda: self.viajes.cambiar_estado(self.viaje_id, EstadoViaje.EN_CURSO))

    async def completar(self, fecha_llegada_real: Optional[datetime], kilometros_reales: Any) -> bool:
        def validar():
            self._exigir(self._vista().puede_completar, "El viaje no se puede completar")
            if fecha_llegada_real is None or kilometros_reales in (None, ""):
                raise ValidacionCliente("Ingrese la fecha de llegada y los kilómetros reales")
            try:
                km = float(kilometros_reales)
            except (TypeError, ValueError):
                raise ValidacionCliente("Los kilómetros deben ser un número")
            if km <= 0:
                raise ValidacionCliente("Los kilómetros deben ser mayores a 0")

        return await self._mutar(
            validar,
            lambda: self.viajes.cambiar_estado(
                self.viaje_id, EstadoViaje.COMPLETADO,
                fecha_llegada_real=fecha_llegada_real,
                kilometros_reales=float(kilometros_reales),
            ),
        )

    async def cancelar(self) -> bool:
        if not self._permitido(lambda: self._exigir(self._vista().puede_cancelar, "El viaje no se puede cancelar")):
            return False
        if not await self._confirmado("¿Está seguro de cancelar este viaje?"):
            return False
        return await self._mutar(None, lambda: self.viajes.cambiar_estado(self.viaje_id, EstadoViaje.CANCELADO))

    async def registrar_pago(self, monto: Any) -> bool:
        valor = {}

        def validar():
            self._exigir(self._vista().puede_registrar_pago, "El viaje ya está pagado")
            valor["monto"] = monto_valido(monto)

        return await self._mutar(validar, lambda: self.viajes.registrar_pago(self.viaje_id, valor["monto"]))

    async def agregar_gasto(self, gasto: dict, comprobante: Optional[Comprobante] = None) -> bool:
        gasto = dict(gasto)

        def validar():
            self._exigir(self._vista().puede_agregar_gasto, "Solo se registran gastos en viajes activos")
            if not gasto.get("tipo_gasto"):
                raise ValidacionCliente("Seleccione el tipo de gasto")
            gasto["monto"] = monto_valido(gasto.get("monto"))

        return await self._mutar(validar, lambda: self.viajes.crear_gasto(self.viaje_id, gasto, comprobante))

    # ------------------------------------------------------------------

    def _vista(self) -> VistaViaje:
        if self.vista is None:
            raise ValidacionCliente("El viaje no está cargado")
        return self.vista

    def _exigir(self, condicion: bool, mensaje: str) -> None:
        if not self.sesion.can_write:
            raise ValidacionCliente("No tiene permisos para realizar esta acción.")
        if not condicion:
            raise ValidacionCliente(mensaje)

    def _permitido(self, validar: Optional[Callable[[], None]]) -> bool:
        if validar is None:
            return True
        try:
            validar()
        except ValidacionCliente as e:
            self.notificador.error(str(e))
            return False
        return True

    async def _confirmado(self, pregunta: str) -> bool:
        if self.confirmar is None:
            return False
        respuesta = self.confirmar(pregunta)
        if inspect.isawaitable(respuesta):
            respuesta = await respuesta
        return bool(respuesta)

    def _avisar(self, error: ApiError) -> None:
        if not error.notificado and self.montado:
            self.notificador.error(error.mensaje)

    async def _mutar(self, validar: Optional[Callable[[], None]], llamada: Callable[[], Awaitable[Any]]) -> bool:
        if not self._permitido(validar):
            return False
        try:
            await llamada()
        except ApiError as e:
            self._avisar(e)
            return False
        if not self.montado:
            return False
        await self.cargar()
        return True
