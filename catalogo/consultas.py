from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from decimal import Decimal
from functools import cmp_to_key
import re
from typing import Any
import unicodedata

from catalogo.tipos import Producto

TODAS = "todos"

SORT_FIELDS: dict[str, str] = {
    "val": "valorNominal",
    "sus": "suscripcion",
    "c17": "cuota17",
    "c8": "cuota8mas",
    "der": "derechoIngreso",
}

TIPO_DERECHO = "di"
TIPO_CUOTA = "cuota"

_NUM_SPLIT_RE = re.compile(r"(\d+)")


def _fold(s: Any) -> str:
    s = unicodedata.normalize("NFKD", str(s or ""))
    return "".join(ch for ch in s if not unicodedata.combining(ch)).casefold()


def _natural_key(s: Any) -> tuple:
    # "9" < "10" < "10a"; text parts compared accent/case-insensitively.
    parts = _NUM_SPLIT_RE.split(str(s or "").strip())
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, _fold(p)) for p in parts if p != "")


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def comparar_codigo_nombre(a: Producto, b: Producto) -> int:
    c = _cmp(_natural_key(a.codigo), _natural_key(b.codigo))
    if c != 0:
        return c
    return _cmp(_fold(a.nombre), _fold(b.nombre))


def filtrar_productos(
    productos: Iterable[Producto],
    *,
    categoria: str = TODAS,
    texto: str = "",
    precio_min: Decimal | int | float | None = None,
    precio_max: Decimal | int | float | None = None,
) -> list[Producto]:
    term = (texto or "").strip().lower()
    pmin = Decimal(str(precio_min)) if precio_min is not None else None
    pmax = Decimal(str(precio_max)) if precio_max is not None else None

    out: list[Producto] = []
    for p in productos:
        if categoria and categoria != TODAS and p.categoriaId != categoria:
            continue
        if term and term not in (p.nombre or "").lower() and term not in str(p.codigo or ""):
            continue
        if pmin is not None and (p.valorNominal is None or p.valorNominal < pmin):
            continue
        if pmax is not None and (p.valorNominal is None or p.valorNominal > pmax):
            continue
        out.append(p)
    return out


def ordenar_productos(
    productos: Iterable[Producto],
    clave: str | None = None,
    direccion: int = 1,
    nombre_categoria: Callable[[str], str] | None = None,
) -> list[Producto]:
    listado = list(productos)
    if not clave:
        return sorted(listado, key=cmp_to_key(comparar_codigo_nombre))

    sign = -1 if direccion < 0 else 1

    def value_of(p: Producto) -> Any:
        if clave == "cat":
            return _fold(nombre_categoria(p.categoriaId) if nombre_categoria else p.categoriaId)
        if clave == "cod":
            return p.codigo
        if clave == "nom":
            return _fold(p.nombre)
        if clave in SORT_FIELDS:
            return getattr(p, SORT_FIELDS[clave])
        return ""

    def compare(a: Producto, b: Producto) -> int:
        va, vb = value_of(a), value_of(b)
        # Missing values always go last, whatever the direction.
        if va is None and vb is None:
            return 0
        if va is None:
            return 1
        if vb is None:
            return -1
        if clave == "cod":
            return sign * comparar_codigo_nombre(a, b)
        return sign * _cmp(va, vb)

    return sorted(listado, key=cmp_to_key(compare))


@dataclass(frozen=True)
class OpcionPago:
    producto: Producto
    valor_match: Decimal
    tipo_ref: str


def valor_referencia(p: Producto, tipo: str) -> Decimal:
    if tipo == TIPO_DERECHO:
        return p.derechoIngreso or Decimal(0)
    c17 = p.cuota17 or Decimal(0)
    c8 = p.cuota8mas or Decimal(0)
    if c17 and c8:
        return min(c17, c8)
    return c17 or c8


def buscar_opciones_pago(
    productos: Iterable[Producto],
    monto: Decimal | int | float | None,
    *,
    tipo: str = TIPO_DERECHO,
    margen: int | float = 5,
) -> list[OpcionPago]:
    """Products whose entry fee (or lowest installment) is within ``margen`` % of ``monto``."""
    if monto is None:
        return []
    target = Decimal(str(monto))
    if target <= 0:
        return []
    m = Decimal(str(margen or 0)) / Decimal(100)
    lo = target * (1 - m)
    hi = target * (1 + m)
    tipo_ref = "Derecho Ingreso" if tipo == TIPO_DERECHO else "Cuota"

    out: list[OpcionPago] = []
    for p in productos:
        valor = valor_referencia(p, tipo)
        if valor and lo <= valor <= hi:
            out.append(OpcionPago(producto=p, valor_match=valor, tipo_ref=tipo_ref))
    out.sort(key=lambda o: o.valor_match)
    return out
