import csv
from datetime import date
from io import StringIO

from flota.cliente.cartera import cartera_csv, guardar_cartera_csv, nombre_archivo

FILAS = [
    {"cliente": "Constructora Andina S.A.", "viajes_count": 3, "total_deuda": 2600.0, "por_vencer": 1000.0,
     "vencido_1_30": 600.0, "vencido_31_60": 0, "vencido_61_90": 0, "vencido_90_mas": 1000.0},
    {"cliente": "Áridos \"El Sur\"", "viajes_count": 1, "total_deuda": 100.555, "por_vencer": 100.555,
     "vencido_1_30": 0, "vencido_31_60": 0, "vencido_61_90": 0, "vencido_90_mas": 0},
]


def _leer(texto):
    return list(csv.reader(StringIO(texto), quoting=csv.QUOTE_NONNUMERIC))


def test_fila_de_totales_suma_las_columnas():
    filas = _leer(cartera_csv(FILAS))

    encabezado, datos, totales = filas[0], filas[1:-1], filas[-1]
    assert encabezado[:3] == ["Cliente", "Viajes", "Total Deuda"]
    assert totales[0] == "TOTALES"
    assert totales[1] == 4
    assert totales[2] == 2700.56
    for indice in range(3, len(encabezado)):
        assert round(sum(fila[indice] for fila in datos), 2) == totales[indice]


def test_nombres_entre_comillas_y_montos_redondeados():
    texto = cartera_csv(FILAS)

    assert '"Constructora Andina S.A."' in texto
    assert '"Áridos ""El Sur"""' in texto
    assert _leer(texto)[2][2] == 100.56


def test_cartera_vacia_solo_totales():
    filas = _leer(cartera_csv([]))
    assert len(filas) == 2
    assert filas[1][0] == "TOTALES"


def test_guardar_con_bom_y_nombre_por_fecha(tmp_path):
    ruta = tmp_path / nombre_archivo(date(2025, 6, 30))

    guardar_cartera_csv(FILAS, str(ruta))

    assert ruta.name == "reporte_cartera_2025-06-30.csv"
    assert ruta.read_bytes().startswith(b"\xef\xbb\xbf")


def test_totales_con_fracciones_de_centavo():
    filas = [
        {"cliente": "Cliente A", "viajes_count": 1, "total_deuda": "0.005", "por_vencer": "0.005"},
        {"cliente": "Cliente B", "viajes_count": 1, "total_deuda": "0.005", "por_vencer": "0.005"},
    ]

    leidas = _leer(cartera_csv(filas))
    datos, totales = leidas[1:-1], leidas[-1]

    assert [fila[2] for fila in datos] == [0.01, 0.01]
    assert totales[2] == 0.02
    assert totales[3] == 0.02
