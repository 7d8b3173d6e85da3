from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from io import BytesIO
import logging
from typing import Any

from catalogo.errores import PdfInvalidoError, PdfNoDisponibleError

logger = logging.getLogger(__name__)

MODO_SIMPLE = "simple"
MODO_LINEAS = "lineas"


@dataclass(frozen=True)
class Fragmento:
    texto: str
    y: float


@dataclass
class LineaExtraida:
    texto: str
    y: float


def fragmentos_de_pagina(page: Any) -> list[Fragmento]:
    # Text-flow order follows the content stream, like the PDF's own reading order.
    words = page.extract_words(use_text_flow=True, keep_blank_chars=False) or []
    out: list[Fragmento] = []
    for w in words:
        text = str(w.get("text") or "")
        if not text.strip():
            continue
        y = w.get("bottom")
        if y is None:
            y = w.get("top", 0.0)
        out.append(Fragmento(texto=text, y=float(y)))
    return out


def reconstruir_lineas(fragmentos: Iterable[Fragmento], tolerancia: float = 2.0) -> list[LineaExtraida]:
    """Group fragments into visual lines by baseline proximity.

    A fragment whose baseline moves more than ``tolerancia`` from the previous
    fragment starts a new line.
    """
    lineas: list[LineaExtraida] = []
    prev_y: float | None = None
    for frag in fragmentos:
        if prev_y is None or abs(frag.y - prev_y) > tolerancia:
            lineas.append(LineaExtraida(texto=frag.texto, y=frag.y))
        else:
            lineas[-1].texto = f"{lineas[-1].texto} {frag.texto}"
        prev_y = frag.y
    return lineas


def texto_de_paginas(paginas: Iterable[Any], modo: str = MODO_LINEAS, tolerancia: float = 2.0) -> str:
    partes: list[str] = []
    for page in paginas:
        fragmentos = fragmentos_de_pagina(page)
        if modo == MODO_SIMPLE:
            partes.append(" ".join(f.texto for f in fragmentos) + "\n")
        else:
            lineas = reconstruir_lineas(fragmentos, tolerancia)
            partes.append("".join(f"{ln.texto}\n" for ln in lineas))
    return "".join(partes)


def extraer_texto_pdf(contenido: bytes, modo: str = MODO_LINEAS, tolerancia: float = 2.0) -> str:
    try:
        import pdfplumber
    except ImportError as e:
        raise PdfNoDisponibleError("No se pudo cargar pdfplumber: instale la dependencia para importar PDF") from e

    try:
        pdf = pdfplumber.open(BytesIO(contenido))
    except Exception as e:
        raise PdfInvalidoError(f"No se pudo abrir el PDF: {e}") from e

    with pdf:
        text = texto_de_paginas(pdf.pages, modo=modo, tolerancia=tolerancia)
        logger.debug("PDF: %d páginas, %d caracteres (modo %s)", len(pdf.pages), len(text), modo)
    return text
