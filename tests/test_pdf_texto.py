import sys
import types

import pytest

from catalogo.errores import PdfInvalidoError, PdfNoDisponibleError
from catalogo.pdf_texto import (
    MODO_LINEAS,
    MODO_SIMPLE,
    Fragmento,
    extraer_texto_pdf,
    fragmentos_de_pagina,
    reconstruir_lineas,
    texto_de_paginas,
)


class FakePage:
    """Page double exposing pdfplumber's extract_words()."""

    def __init__(self, words):
        self.words = words
        self.kwargs = None

    def extract_words(self, **kwargs):
        self.kwargs = kwargs
        return [{"text": t, "top": y - 8, "bottom": y} for t, y in self.words]


class FakePdf:
    def __init__(self, pages):
        self.pages = pages
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True
        return False


PAGE = FakePage(
    [
        ("12345", 100.0),
        ("1.000,00", 100.5),
        ("$500,00", 101.0),
        ("Plan", 120.0),
        ("Auto", 120.0),
        ("$", 121.5),
        ("3.000,00", 121.5),
    ]
)


def test_fragmentos_de_pagina_usa_flujo_de_texto():
    page = FakePage([("a", 10.0), ("  ", 10.0), ("b", 20.0)])
    frags = fragmentos_de_pagina(page)
    assert frags == [Fragmento("a", 10.0), Fragmento("b", 20.0)]
    assert page.kwargs["use_text_flow"] is True


def test_reconstruir_lineas_por_tolerancia():
    lineas = reconstruir_lineas(fragmentos_de_pagina(PAGE), tolerancia=2.0)
    assert [ln.texto for ln in lineas] == ["12345 1.000,00 $500,00", "Plan Auto $ 3.000,00"]
    assert lineas[0].y == 100.0


def test_reconstruir_lineas_compara_con_el_fragmento_anterior():
    # Each step is within tolerance even though the drift accumulates.
    frags = [Fragmento("a", 10.0), Fragmento("b", 11.5), Fragmento("c", 13.0)]
    assert [ln.texto for ln in reconstruir_lineas(frags, 2.0)] == ["a b c"]
    assert len(reconstruir_lineas(frags, 1.0)) == 3


def test_texto_de_paginas_modos():
    otra = FakePage([("Página", 700.0), ("2", 700.0)])
    assert texto_de_paginas([PAGE, otra], MODO_LINEAS) == (
        "12345 1.000,00 $500,00\nPlan Auto $ 3.000,00\nPágina 2\n"
    )
    assert texto_de_paginas([PAGE, otra], MODO_SIMPLE) == (
        "12345 1.000,00 $500,00 Plan Auto $ 3.000,00\nPágina 2\n"
    )


def test_extraer_texto_pdf_sin_pdfplumber(monkeypatch):
    monkeypatch.setitem(sys.modules, "pdfplumber", None)
    with pytest.raises(PdfNoDisponibleError):
        extraer_texto_pdf(b"%PDF-1.4")


def test_extraer_texto_pdf_invalido(monkeypatch):
    def boom(_fp):
        raise ValueError("not a pdf")

    monkeypatch.setitem(sys.modules, "pdfplumber", types.SimpleNamespace(open=boom))
    with pytest.raises(PdfInvalidoError):
        extraer_texto_pdf(b"garbage")


def test_extraer_texto_pdf_cierra_el_documento(monkeypatch):
    pdf = FakePdf([PAGE])
    monkeypatch.setitem(sys.modules, "pdfplumber", types.SimpleNamespace(open=lambda _fp: pdf))
    text = extraer_texto_pdf(b"%PDF-1.4", modo=MODO_LINEAS)
    assert text.startswith("12345 1.000,00")
    assert pdf.closed
