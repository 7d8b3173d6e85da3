from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from itertools import zip_longest
import logging
import re
from typing import Any

from catalogo.numeros import decimal_a_json, normalizar_numero
from catalogo.tipos import Producto

logger = logging.getLogger(__name__)

_AMT = r"\d(?:[\d.,]*\d)?"

# 5-digit code followed by: valor nominal, cuota 1 a 7, cuota 8 en adelante, derecho de ingreso.
CODIGO_RE = re.compile(
    r"(?<![\d.,])(\d{5})\s+\$?\s*(" + _AMT + r")"
    r"\s+\$?\s*(" + _AMT + r")"
    r"\s+\$?\s*(" + _AMT + r")"
    r"\s+\$?\s*(" + _AMT + r")"
)

# Section variant (text without reliable line breaks).
SECCION_RE = re.compile(r"Descripci[oó]n\s+Suscripci[oó]n([\s\S]+)", re.IGNORECASE)
SECCION_FILA_RE = re.compile(r"([A-ZÁÉÍÓÚÜÑ0-9 ]+?)\s+\$\s*(" + _AMT + r")")

# Line variant.
ENCABEZADO_RE = re.compile(r"derecho\s+de\s+ingreso.*cuota\s+comercial\s+del\s+mes", re.IGNORECASE)
FECHA_RE = re.compile(r"\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b")
PIE_RE = re.compile(r"^\s*(?:p[áa]g(?:ina)?\.?\s*\d+|\d+\s*(?:de|/)\s*\d+\s*$)", re.IGNORECASE)
LINEA_CODIGO_RE = re.compile(r"^\s*\d{5}\s")
COMBO_RE = re.compile(r"^(?P<desc>.*\+.*?)\s+\$\s*(?P<monto>" + _AMT + r")\s+\$?\s*(?P<extra>" + _AMT + r")\s*$")
GENERICO_RE = re.compile(r"^(?P<desc>.*?)\s+\$\s*(?P<monto>" + _AMT + r")")

_LETRA_RE = re.compile(r"[A-Za-zÁÉÍÓÚÜÑáéíóúüñ]")


@dataclass(frozen=True)
class FilaCodigo:
    codigo: str
    valor_nominal: str
    cuota17: str
    cuota8mas: str
    derecho_ingreso: str


@dataclass(frozen=True)
class FilaDescripcion:
    descripcion: str
    suscripcion: str


@dataclass(frozen=True)
class FilaPdf:
    codigo: str | None
    descripcion: str | None
    valorNominal: Decimal | None
    suscripcion: Decimal | None
    cuota17: Decimal | None
    cuota8mas: Decimal | None
    derechoIngreso: Decimal | None


def normalizar_texto(texto: str) -> str:
    return (texto or "").replace("\r", "")


def extraer_filas_codigo(texto: str) -> list[FilaCodigo]:
    return [FilaCodigo(*m.groups()) for m in CODIGO_RE.finditer(normalizar_texto(texto))]


def _filas_por_seccion(texto: str) -> list[FilaDescripcion]:
    m = SECCION_RE.search(texto)
    if not m:
        return []
    out: list[FilaDescripcion] = []
    for fm in SECCION_FILA_RE.finditer(m.group(1)):
        desc = fm.group(1).strip()
        if not desc or not _LETRA_RE.search(desc):
            continue
        out.append(FilaDescripcion(descripcion=desc, suscripcion=fm.group(2)))
    return out


def _filas_por_lineas(lineas: list[str]) -> list[FilaDescripcion]:
    out: list[FilaDescripcion] = []
    dentro = False
    for raw in lineas:
        line = raw.strip()
        if not line:
            continue
        if ENCABEZADO_RE.search(line):
            dentro = True
            continue
        if not dentro:
            continue
        if FECHA_RE.search(line) or PIE_RE.match(line) or LINEA_CODIGO_RE.match(line):
            continue

        m = COMBO_RE.match(line) if "+" in line else None
        if m is None:
            m = GENERICO_RE.match(line)
        if m is None:
            continue
        desc = m.group("desc").strip()
        if not desc or not _LETRA_RE.search(desc):
            continue
        out.append(FilaDescripcion(descripcion=desc, suscripcion=m.group("monto")))
    return out


def extraer_filas_descripcion(texto: str) -> list[FilaDescripcion]:
    """Find description/subscription rows.

    Uses the line variant when the text carries the price-list header line;
    otherwise scans the section following ``Descripción Suscripción``.
    """
    texto = normalizar_texto(texto)
    lineas = texto.split("\n")
    if any(ENCABEZADO_RE.search(ln) for ln in lineas):
        return _filas_por_lineas(lineas)
    return _filas_por_seccion(texto)


def emparejar(codigos: list[FilaCodigo], descripciones: list[FilaDescripcion]) -> list[FilaPdf]:
    # Rows are zipped by position; both lists must follow the document order.
    if len(codigos) != len(descripciones):
        logger.warning(
            "PDF: %d filas de código y %d de descripción; se emparejan por posición",
            len(codigos),
            len(descripciones),
        )
    out: list[FilaPdf] = []
    for c, d in zip_longest(codigos, descripciones):
        out.append(
            FilaPdf(
                codigo=c.codigo if c else None,
                descripcion=d.descripcion if d else None,
                valorNominal=normalizar_numero(c.valor_nominal) if c else None,
                suscripcion=normalizar_numero(d.suscripcion) if d else None,
                cuota17=normalizar_numero(c.cuota17) if c else None,
                cuota8mas=normalizar_numero(c.cuota8mas) if c else None,
                derechoIngreso=normalizar_numero(c.derecho_ingreso) if c else None,
            )
        )
    return out


def extraer_filas(texto: str) -> list[FilaPdf]:
    texto = normalizar_texto(texto)
    return emparejar(extraer_filas_codigo(texto), extraer_filas_descripcion(texto))


def extraer_productos(texto: str, categoria_id: str, generar_id: Callable[[], str]) -> list[Producto]:
    out: list[Producto] = []
    for f in extraer_filas(texto):
        out.append(
            Producto(
                id=generar_id(),
                categoriaId=categoria_id,
                codigo=f.codigo or "",
                nombre=(f.descripcion or "").strip(),
                valorNominal=f.valorNominal,
                suscripcion=f.suscripcion,
                cuota17=f.cuota17,
                cuota8mas=f.cuota8mas,
                derechoIngreso=f.derechoIngreso,
            )
        )
    return out


def documento_conversion(nombre: str, filas: list[FilaPdf]) -> dict[str, Any]:
    """JSON document produced by the PDF conversion tool."""
    items = [
        {
            "codigo": f.codigo,
            "descripcion": f.descripcion,
            "valorNominal": decimal_a_json(f.valorNominal),
            "suscripcion": decimal_a_json(f.suscripcion),
            "cuota_1_7": decimal_a_json(f.cuota17),
            "cuota_8_adelante": decimal_a_json(f.cuota8mas),
            "derechoIngreso": decimal_a_json(f.derechoIngreso),
        }
        for f in filas
    ]
    return {"fileName": nombre, "itemCount": len(items), "items": items}
