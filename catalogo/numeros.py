from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

_WS_RE = re.compile(r"\s+")

# Order matters: grouped forms first, then plain and single-separator forms,
# then a Latin-American guess as the last resort.
_PLAIN_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_COMMA_DECIMAL_RE = re.compile(r"^-?\d+,\d+$")
_DOT_GROUPED_RE = re.compile(r"^-?\d{1,3}(?:\.\d{3})+(?:,\d+)?$")
_COMMA_GROUPED_RE = re.compile(r"^-?\d{1,3}(?:,\d{3})+(?:\.\d+)?$")


def _to_decimal(s: str) -> Decimal | None:
    if not _PLAIN_RE.match(s):
        return None
    try:
        return Decimal(s)
    except InvalidOperation:
        return None


def normalizar_numero(raw: Any) -> Decimal | None:
    """Convert a loosely formatted amount into a Decimal.

    Accepts numbers (returned as Decimal when finite) and strings using either
    ``1.234,56`` or ``1,234.56`` conventions. Returns None for empty or
    unparseable input; it never raises.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        return raw if raw.is_finite() else None
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        return Decimal(str(raw)) if math.isfinite(raw) else None

    s = _WS_RE.sub("", str(raw))
    if s.startswith("$"):
        s = s[1:]
    elif s.startswith("-$"):
        s = "-" + s[2:]
    if not s:
        return None

    # "1.234" and "1,234" read as thousands: price lists never carry 3-decimal amounts.
    if _DOT_GROUPED_RE.match(s):
        return _to_decimal(s.replace(".", "").replace(",", "."))
    if _COMMA_GROUPED_RE.match(s):
        return _to_decimal(s.replace(",", ""))
    if _PLAIN_RE.match(s):
        return _to_decimal(s)
    if _COMMA_DECIMAL_RE.match(s):
        return _to_decimal(s.replace(",", "."))

    # Fallback: dots are thousands, the last comma (if any) is the decimal point.
    s = s.replace(".", "")
    head, sep, tail = s.rpartition(",")
    if sep:
        s = f"{head.replace(',', '')}.{tail}"
    return _to_decimal(s)


def a_monto(value: Any) -> Decimal | None:
    """Amount typed in an edit form, rounded to 2 decimals."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    d = normalizar_numero(value)
    if d is None:
        return None
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def decimal_a_json(value: Decimal | None) -> float | int | None:
    if value is None:
        return None
    if value == value.to_integral_value() and value.as_tuple().exponent >= 0:
        return int(value)
    return float(value)


def _miles_es(n: int) -> str:
    return f"{n:,}".replace(",", ".")


@dataclass(frozen=True)
class Sugerencia:
    label: str
    value: int


@dataclass(frozen=True)
class MontoInterpretado:
    valor: int | None
    sugerencias: list[Sugerencia] = field(default_factory=list)


_MONTO_RE = re.compile(r"^(\d+)([a-z]*)$")


def interpretar_monto(texto: Any) -> MontoInterpretado:
    """Read shorthand amounts such as ``15k``, ``2mil`` or ``3m``.

    A bare number is ambiguous; it yields no value and two suggestions
    (thousands and millions).
    """
    cleaned = re.sub(r"[.,\s]+", "", str(texto if texto is not None else "").lower())
    if not cleaned:
        return MontoInterpretado(None)
    m = _MONTO_RE.match(cleaned)
    if not m:
        return MontoInterpretado(None)

    number = int(m.group(1))
    suffix = m.group(2)
    if not suffix:
        localized = _miles_es(number)
        return MontoInterpretado(
            None,
            [
                Sugerencia(f"{localized} Mil", number * 1_000),
                Sugerencia(f"{localized} Millones", number * 1_000_000),
            ],
        )

    multiplier = 1
    if suffix == "k":
        multiplier = 1_000
    elif suffix == "kk":
        multiplier = 1_000_000
    elif suffix.startswith("mill"):
        multiplier = 1_000_000
    elif suffix.startswith("mil"):
        multiplier = 1_000
    elif suffix.startswith("m"):
        multiplier = 1_000_000
    return MontoInterpretado(number * multiplier)


def interpretar_porcentaje(texto: Any) -> int | None:
    digits = re.sub(r"[^0-9]", "", str(texto if texto is not None else ""))
    if not digits:
        return None
    return max(0, min(100, int(digits)))
