from __future__ import annotations

from decimal import Decimal, ROUND_DOWN
from typing import Any


def money_es(n: float | Decimal, decimals: int = 2) -> str:
    # 12.345,67 format
    return f"{n:,.{decimals}f}".replace(",", "_").replace(".", ",").replace("_", ".")


def numero_es(value: Decimal | float | None, dec: bool = True) -> str:
    """es-AR number, truncated (never rounded up) to 2 or 0 decimals."""
    if value is None:
        return ""
    d = Decimal(str(value))
    if dec:
        return money_es(d.quantize(Decimal("0.01"), rounding=ROUND_DOWN), 2)
    return money_es(d.quantize(Decimal("1"), rounding=ROUND_DOWN), 0)


def simplificado(value: Decimal | float | None) -> str:
    """'2 Millones 350 Mil' style."""
    if value is None:
        return ""
    d = Decimal(str(value))
    if not d.is_finite():
        return ""
    millones = int(d / 1_000_000)
    miles = int((d % 1_000_000) / 1_000)
    if millones == 0:
        return f"{money_es(miles, 0)} Mil"
    label = "Millón" if millones == 1 else "Millones"
    if miles == 0:
        return f"{money_es(millones, 0)} {label}"
    return f"{money_es(millones, 0)} {label} {money_es(miles, 0)} Mil"


def formato_importe(value: Decimal | float | None, prefs: dict[str, Any]) -> str:
    if value is None:
        return ""
    if prefs.get("simple"):
        return simplificado(value)
    return numero_es(value, bool(prefs.get("dec", True)))
