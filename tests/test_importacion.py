from decimal import Decimal
import json

import pytest

from catalogo.catalogo import Catalogo
from catalogo.errores import BaseInvalidaError, PdfNoDisponibleError
from catalogo.importacion import (
    TIPO_JSON,
    TIPO_PDF,
    TIPO_XLSX,
    ArchivoEntrante,
    Importador,
    categoria_desde_nombre,
    tipo_archivo,
)
from catalogo.tipos import Categoria, Producto

from conftest import planilla_bytes

FILAS = [
    {"Column3": "Código", "Column4": "Descripción"},
    {"Column3": "12345", "Column4": "Plan Auto", "Column8": "1.000,00", "Column13": "100"},
    {"Column3": "67890", "Column4": "Plan Moto", "Column8": "2.000,00", "Column13": "200"},
]


class Cambios:
    def __init__(self):
        self.n = 0

    def __call__(self):
        self.n += 1


@pytest.fixture()
def cambios():
    return Cambios()


@pytest.fixture()
def importador(catalogo, cambios):
    catalogo.set_on_change(cambios)
    return Importador(catalogo, get_settings=lambda: {"dec": False})


def test_tipo_archivo():
    assert tipo_archivo(ArchivoEntrante("a.PDF", b"")) == TIPO_PDF
    assert tipo_archivo(ArchivoEntrante("a.xlsx", b"")) == TIPO_XLSX
    assert tipo_archivo(ArchivoEntrante("a.json", b"")) == TIPO_JSON
    assert tipo_archivo(ArchivoEntrante("sin_extension", b"")) == TIPO_JSON
    # Declared type wins over the extension.
    assert tipo_archivo(ArchivoEntrante("a.json", b"", "application/pdf")) == TIPO_PDF
    assert tipo_archivo(ArchivoEntrante("a.pdf", b"", "application/octet-stream")) == TIPO_PDF


def test_categoria_desde_nombre():
    assert categoria_desde_nombre("Autos Marzo.JSON", TIPO_JSON) == ("autos marzo", "Autos Marzo")
    assert categoria_desde_nombre("dir/Motos.pdf", TIPO_PDF) == ("motos", "Motos")


def test_lote_continua_tras_un_archivo_invalido(importador, catalogo, cambios):
    res = importador.importar_lote(
        [
            ArchivoEntrante("Autos.json", planilla_bytes(FILAS)),
            ArchivoEntrante("Rota.json", b"{no es json"),
        ]
    )
    assert res.importados == 1
    assert res.agregados == 2
    assert len(res.errores) == 1
    assert res.errores[0].startswith("Rota.json: ")
    assert [c.id for c in catalogo.categorias()] == ["autos"]
    assert {p.categoriaId for p in catalogo.productos()} == {"autos"}
    assert cambios.n == 1


def test_lote_sin_productos_no_notifica(importador, catalogo, cambios):
    res = importador.importar_lote([ArchivoEntrante("Vacia.json", planilla_bytes({"rows": [FILAS[0]]}))])
    assert res.importados == 1
    assert res.agregados == 0
    assert cambios.n == 0
    # The category still exists: the file itself was readable.
    assert catalogo.existe_categoria("vacia")


def test_lote_con_categoria_explicita(importador, catalogo):
    catalogo.asegurar_categoria("planes", "Planes", notificar=False)
    res = importador.importar_lote([ArchivoEntrante("Otra.json", planilla_bytes(FILAS))], "planes")
    assert res.agregados == 2
    assert [c.id for c in catalogo.categorias()] == ["planes"]


def test_lote_pdf(catalogo):
    texto = (
        "12345 1.000,00 $500,00 $250,00 $100,00\n"
        "Descripción Suscripción PLAN AUTO $ 3.000,00\n"
    )
    importador = Importador(catalogo, leer_pdf=lambda contenido, **kw: texto)
    res = importador.importar_lote([ArchivoEntrante("Lista Marzo.pdf", b"%PDF")])
    assert res.agregados == 1
    p = catalogo.productos()[0]
    assert (p.categoriaId, p.codigo, p.nombre) == ("lista marzo", "12345", "PLAN AUTO")
    assert p.suscripcion == Decimal("3000.00")


def test_lote_pdf_sin_biblioteca_es_error_por_archivo(catalogo):
    def sin_pdf(contenido, **kw):
        raise PdfNoDisponibleError("No se pudo cargar pdfplumber")

    importador = Importador(catalogo, leer_pdf=sin_pdf)
    res = importador.importar_lote(
        [ArchivoEntrante("a.pdf", b"%PDF"), ArchivoEntrante("b.json", planilla_bytes(FILAS))]
    )
    assert res.importados == 1
    assert res.errores == ["a.pdf: No se pudo cargar pdfplumber"]
    # Failed files leave no category behind.
    assert [c.id for c in catalogo.categorias()] == ["b"]


def test_importar_base_sin_productos_no_modifica(importador, catalogo, cambios):
    importador.importar_lote([ArchivoEntrante("Autos.json", planilla_bytes(FILAS))])
    antes = catalogo.snapshot()
    n = cambios.n

    with pytest.raises(BaseInvalidaError, match="productos"):
        importador.importar_base(json.dumps({"categorias": []}))
    with pytest.raises(BaseInvalidaError):
        importador.importar_base(b"[1, 2]")
    with pytest.raises(BaseInvalidaError):
        importador.importar_base(b"{roto")
    with pytest.raises(BaseInvalidaError):
        importador.importar_base({"categorias": [], "productos": ["x"]})

    assert catalogo.snapshot() == antes
    assert cambios.n == n


def test_importar_base_rechaza_categorias_repetidas_o_sin_id(importador, catalogo, cambios):
    catalogo.asegurar_categoria("x", "X", notificar=False)
    antes = catalogo.snapshot()

    with pytest.raises(BaseInvalidaError, match="repetida"):
        importador.importar_base(
            {"categorias": [{"id": "a", "nombre": "A"}, {"id": "a", "nombre": "Otra"}], "productos": []}
        )
    with pytest.raises(BaseInvalidaError, match="sin id"):
        importador.importar_base({"categorias": [{"nombre": "Sin id"}], "productos": []})

    assert catalogo.snapshot() == antes
    assert cambios.n == 0


def test_exportar_e_importar_base_ida_y_vuelta(importador, catalogo):
    importador.importar_lote(
        [
            ArchivoEntrante("Autos.json", planilla_bytes(FILAS)),
            ArchivoEntrante("Motos.json", planilla_bytes({"data": FILAS[1:2]})),
        ]
    )
    documento = importador.exportar_base_json()
    data = json.loads(documento)
    assert data["settings"] == {"dec": False}

    otro = Catalogo()
    res = Importador(otro).importar_base(documento)
    assert (res.categorias, res.productos) == (2, 3)

    def ordenado(snap):
        return (
            sorted(snap["categorias"], key=lambda c: c["id"]),
            sorted(snap["productos"], key=lambda p: p["id"]),
        )

    assert ordenado(otro.snapshot()) == ordenado(catalogo.snapshot())


def test_importar_base_genera_ids_faltantes(importador, catalogo, cambios):
    res = importador.importar_base(
        {
            "categorias": [{"id": "autos", "nombre": "Autos"}],
            "productos": [{"categoriaId": "autos", "codigo": 12345, "nombre": " Plan ", "valorNominal": "1.500,50"}],
        }
    )
    assert res.productos == 1
    p = catalogo.productos()[0]
    assert p.id == "p1"
    assert p.codigo == "12345"
    assert p.nombre == "Plan"
    assert p.valorNominal == Decimal("1500.50")
    assert catalogo.categorias() == [Categoria("autos", "Autos")]
    assert cambios.n == 1


def test_exportar_base_incluye_productos(importador, catalogo):
    catalogo.reemplazar(
        [Categoria("c", "C")],
        [Producto(id="x", categoriaId="c", codigo="1", valorNominal=Decimal("10.50"))],
        notificar=False,
    )
    data = importador.exportar_base()
    assert data["productos"][0]["valorNominal"] == 10.5
    assert data["categorias"] == [{"id": "c", "nombre": "C"}]
