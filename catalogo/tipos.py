from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from catalogo.numeros import decimal_a_json, normalizar_numero

MONEY_FIELDS = ("valorNominal", "suscripcion", "cuota17", "cuota8mas", "derechoIngreso")


@dataclass
class Categoria:
    id: str
    nombre: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "nombre": self.nombre}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Categoria":
        cat_id = str(data.get("id") or "").strip()
        nombre = str(data.get("nombre") if data.get("nombre") is not None else cat_id)
        return cls(id=cat_id, nombre=nombre)


@dataclass
class Producto:
    """Producto del catálogo con sus importes de plan.

    Los importes quedan en None cuando la fuente no trae un número legible.
    """

    id: str
    categoriaId: str
    codigo: str
    nombre: str = ""
    valorNominal: Decimal | None = None
    suscripcion: Decimal | None = None
    cuota17: Decimal | None = None
    cuota8mas: Decimal | None = None
    derechoIngreso: Decimal | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "categoriaId": self.categoriaId,
            "codigo": self.codigo,
            "nombre": self.nombre,
        }
        for f in MONEY_FIELDS:
            out[f] = decimal_a_json(getattr(self, f))
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Producto":
        codigo = data.get("codigo")
        return cls(
            id=str(data.get("id") or ""),
            categoriaId=str(data.get("categoriaId") or ""),
            codigo="" if codigo is None else str(codigo),
            nombre=str(data.get("nombre") or "").strip(),
            **{f: normalizar_numero(data.get(f)) for f in MONEY_FIELDS},
        )
