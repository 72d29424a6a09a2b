import asyncio

from flota.cliente.alertas import SondeoAlertas
from flota.cliente.http import ApiError


class AlertasFalsas:
    def __init__(self, respuestas):
        self.respuestas = list(respuestas)
        self.llamadas = 0

    async def obtener(self):
        self.llamadas += 1
        respuesta = self.respuestas[min(self.llamadas, len(self.respuestas)) - 1]
        if isinstance(respuesta, Exception):
            raise respuesta
        return respuesta


async def test_error_conserva_el_ultimo_resultado():
    sondeo = SondeoAlertas(AlertasFalsas([{"resumen": {"total": 4}}, ApiError("caído", 500)]))

    await sondeo.actualizar()
    await sondeo.actualizar()

    assert sondeo.total == 4


async def test_sin_datos_el_total_es_cero():
    sondeo = SondeoAlertas(AlertasFalsas([ApiError("caído", 500)]))
    await sondeo.actualizar()
    assert sondeo.total == 0
    assert sondeo.resumen == {}


async def test_consulta_periodica_y_detencion():
    api = AlertasFalsas([{"resumen": {"total": 1}}])
    sondeo = SondeoAlertas(api, intervalo=0.01)

    tarea = sondeo.iniciar()
    assert sondeo.iniciar() is tarea
    await asyncio.sleep(0.05)
    await sondeo.detener()
    llamadas = api.llamadas
    await asyncio.sleep(0.03)

    assert llamadas >= 2
    assert api.llamadas == llamadas
    assert tarea.cancelled()
