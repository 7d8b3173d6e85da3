from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from io import BytesIO
import logging
import re
from typing import Any
import unicodedata

from openpyxl import load_workbook

from catalogo.errores import PlanillaInvalidaError
from catalogo.filas import como_fila, resolver_valor
from catalogo.numeros import normalizar_numero
from catalogo.tipos import MONEY_FIELDS, Producto

logger = logging.getLogger(__name__)

# Column aliases to support the monthly planillas.
# - Converter output: Column3 (código), Column4 (nombre), Column8.. (importes)
# - Hand-made exports: Codigo/Código, Nombre, Valor Nominal, ...
# - Positional rows (XLSX or JSON arrays): zero-based indices
COLUMN_ALIASES: dict[str, list[str]] = {
    "codigo": ["Column3", "Codigo", "Código", "Cod", "Cód", "Codigo Producto", "2"],
    "nombre": ["Column4", "Nombre", "Descripcion", "Descripción", "Producto", "3"],
    "valorNominal": ["Column8", "Valor Nominal", "ValorNominal", "Valor", "7"],
    "suscripcion": ["Column9", "Suscripcion", "Suscripción", "8"],
    "cuota17": ["Column11", "Cuota 1 a 7", "Cuota 1-7", "Cuotas 1 a 7", "cuota17", "10"],
    "cuota8mas": ["Column12", "Cuota 8 en adelante", "Cuota 8+", "Cuotas 8 en adelante", "cuota8mas", "11"],
    "derechoIngreso": ["Column13", "Derecho de Ingreso", "Derecho Ingreso", "derechoIngreso", "12"],
}

# Header cells repeated inside the data area (includes the mis-decoded UTF-8 form).
HEADER_LABELS = frozenset(s.casefold() for s in ("Codigo", "Código", "CÃ³digo"))

# Wrapper keys some monthly exports use around the row array.
WRAPPER_KEYS = ("rows", "data")

_DIGITS_RE = re.compile(r"^[0-9]+$")


def _norm(x: Any) -> str:
    s = str(x or "").strip()
    s = " ".join(s.split())
    s = unicodedata.normalize("NFKD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    return s.casefold()


def _codigo_texto(value: Any) -> str:
    # Spreadsheets often hand codes back as numbers (12345 or 12345.0).
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def es_codigo_valido(value: Any) -> bool:
    codigo = _codigo_texto(value)
    if codigo.casefold() in HEADER_LABELS:
        return False
    return bool(_DIGITS_RE.match(codigo))


def extraer_filas(payload: Any) -> list[Any]:
    """Return the row array of a planilla payload.

    Accepts the array itself or an object wrapping it under ``rows``/``data``
    or under any other array-valued property.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        for key in WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]
        for value in payload.values():
            if isinstance(value, list):
                return value
    raise PlanillaInvalidaError("JSON inválido: no contiene un arreglo de filas")


def parse_planilla_rows(
    rows: Iterable[Any],
    categoria_id: str,
    generar_id: Callable[[], str],
) -> tuple[list[Producto], int]:
    out: list[Producto] = []
    for raw in rows:
        fila = como_fila(raw)
        if fila is None:
            continue

        codigo = resolver_valor(fila, COLUMN_ALIASES["codigo"])
        if not es_codigo_valido(codigo):
            continue

        nombre = resolver_valor(fila, COLUMN_ALIASES["nombre"])
        montos = {f: normalizar_numero(resolver_valor(fila, COLUMN_ALIASES[f])) for f in MONEY_FIELDS}

        out.append(
            Producto(
                id=generar_id(),
                categoriaId=categoria_id,
                codigo=_codigo_texto(codigo),
                nombre=str(nombre if nombre is not None else "").strip(),
                **montos,
            )
        )
    return out, len(out)


def leer_filas_xlsx(contenido: bytes, worksheet_name: str = "") -> list[list[Any]]:
    """Read every row of an XLSX planilla as a positional list."""
    try:
        # read_only=True is dramatically faster and avoids huge memory spikes.
        wb = load_workbook(filename=BytesIO(contenido), data_only=True, read_only=True)
    except Exception as e:
        raise PlanillaInvalidaError(f"XLSX inválido: {e}") from e

    try:
        ws = None
        desired = _norm(worksheet_name)
        if desired:
            ws = next((wb[n] for n in wb.sheetnames if _norm(n) == desired), None)
            if ws is None:
                logger.warning("Hoja '%s' no encontrada; se usa la primera", worksheet_name)
        if ws is None:
            if not wb.sheetnames:
                raise PlanillaInvalidaError("XLSX sin hojas")
            ws = wb[wb.sheetnames[0]]
        return [list(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
