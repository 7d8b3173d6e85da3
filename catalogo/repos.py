from __future__ import annotations

from datetime import datetime
from decimal import Decimal
import json
import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from catalogo.models import CategoriaRow, PreferenciasRow, ProductoRow
from catalogo.tipos import Categoria, Producto

logger = logging.getLogger(__name__)

PREFERENCIAS_KEY = "settings"

_MONEY_LIMIT = Decimal("1e12")


def _money(x: Decimal | None) -> Decimal | None:
    # Numeric(14, 2): amounts outside the column's range are stored as null.
    if x is None:
        return None
    if not x.is_finite() or abs(x) >= _MONEY_LIMIT:
        logger.warning("Importe fuera de rango, se guarda vacío: %s", x)
        return None
    return x.quantize(Decimal("0.01"))


class CatalogoRepo:
    def __init__(self, session: Session):
        self.session = session

    def cargar(self) -> tuple[list[Categoria], list[Producto]]:
        cats = self.session.execute(
            select(CategoriaRow).order_by(CategoriaRow.posicion.asc(), CategoriaRow.id.asc())
        ).scalars().all()
        prods = self.session.execute(
            select(ProductoRow).order_by(ProductoRow.posicion.asc(), ProductoRow.id.asc())
        ).scalars().all()
        return (
            [Categoria(id=c.id, nombre=c.nombre) for c in cats],
            [
                Producto(
                    id=p.id,
                    categoriaId=p.categoria_id,
                    codigo=p.codigo or "",
                    nombre=p.nombre or "",
                    valorNominal=p.valor_nominal,
                    suscripcion=p.suscripcion,
                    cuota17=p.cuota17,
                    cuota8mas=p.cuota8mas,
                    derechoIngreso=p.derecho_ingreso,
                )
                for p in prods
            ],
        )

    def guardar(self, categorias: list[Categoria], productos: list[Producto]) -> int:
        """Replace the stored catalog with the given snapshot. Returns rows written."""
        self.session.execute(delete(ProductoRow))
        self.session.execute(delete(CategoriaRow))

        # Snapshots may carry repeated ids (hand-edited bases); keep the first occurrence.
        seen_cats: set[str] = set()
        cat_rows = []
        for i, c in enumerate(categorias):
            if c.id in seen_cats:
                continue
            seen_cats.add(c.id)
            cat_rows.append({"id": c.id, "nombre": c.nombre, "posicion": i})

        seen_prods: set[str] = set()
        prod_rows = []
        for i, p in enumerate(productos):
            if p.id in seen_prods:
                continue
            seen_prods.add(p.id)
            prod_rows.append(
                {
                    "id": p.id,
                    "categoria_id": p.categoriaId,
                    "codigo": p.codigo or "",
                    "nombre": p.nombre or "",
                    "valor_nominal": _money(p.valorNominal),
                    "suscripcion": _money(p.suscripcion),
                    "cuota17": _money(p.cuota17),
                    "cuota8mas": _money(p.cuota8mas),
                    "derecho_ingreso": _money(p.derechoIngreso),
                    "posicion": i,
                }
            )

        if cat_rows:
            self.session.execute(CategoriaRow.__table__.insert(), cat_rows)
        if prod_rows:
            self.session.execute(ProductoRow.__table__.insert(), prod_rows)
        return len(cat_rows) + len(prod_rows)

    def cargar_preferencias(self) -> dict[str, Any] | None:
        row = self.session.get(PreferenciasRow, PREFERENCIAS_KEY)
        if row is None:
            return None
        try:
            data = json.loads(row.valor or "{}")
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    def guardar_preferencias(self, data: dict[str, Any]) -> None:
        text = json.dumps(data, ensure_ascii=False)
        row = self.session.get(PreferenciasRow, PREFERENCIAS_KEY)
        if row is None:
            self.session.add(PreferenciasRow(clave=PREFERENCIAS_KEY, valor=text, updated_at=datetime.utcnow()))
        else:
            row.valor = text
            row.updated_at = datetime.utcnow()

    def borrar_preferencias(self) -> None:
        self.session.execute(delete(PreferenciasRow))
