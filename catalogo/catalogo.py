from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace
from decimal import Decimal
import itertools
import logging
import re
import threading
import time
import uuid
from typing import Any

from catalogo.errores import CatalogoError
from catalogo.numeros import a_monto
from catalogo.tipos import MONEY_FIELDS, Categoria, Producto

logger = logging.getLogger(__name__)


def crear_generador_ids() -> Callable[[], str]:
    """Pick the id strategy once: uuid4 when the platform has a randomness source."""
    try:
        uuid.uuid4()
    except NotImplementedError:
        logger.warning("uuid4 no disponible; se usan ids basados en contador")
        counter = itertools.count(1)

        def _por_contador() -> str:
            return f"id-{int(time.time() * 1000):x}-{next(counter):x}"

        return _por_contador

    def _uuid() -> str:
        return str(uuid.uuid4())

    return _uuid


_SLUG_WS_RE = re.compile(r"\s+")


def slug_categoria(texto: str) -> str:
    return _SLUG_WS_RE.sub("-", (texto or "").strip().lower())


class Catalogo:
    """Owned collections of categories and products.

    Every mutation calls ``on_change`` so the owner can schedule persistence.
    Readers get copies; records are only changed through this object.
    """

    def __init__(
        self,
        *,
        generar_id: Callable[[], str] | None = None,
        on_change: Callable[[], None] | None = None,
    ):
        self._categorias: list[Categoria] = []
        self._productos: list[Producto] = []
        self._lock = threading.RLock()
        self.generar_id = generar_id or crear_generador_ids()
        self._on_change = on_change

    def set_on_change(self, on_change: Callable[[], None] | None) -> None:
        self._on_change = on_change

    def notificar_cambio(self) -> None:
        if self._on_change is not None:
            self._on_change()

    # --- Queries ---
    def categorias(self) -> list[Categoria]:
        with self._lock:
            return [replace(c) for c in self._categorias]

    def productos(self) -> list[Producto]:
        with self._lock:
            return [replace(p) for p in self._productos]

    def existe_categoria(self, categoria_id: str) -> bool:
        with self._lock:
            return any(c.id == categoria_id for c in self._categorias)

    def nombre_categoria(self, categoria_id: str) -> str:
        with self._lock:
            return next((c.nombre for c in self._categorias if c.id == categoria_id), "")

    def get_producto(self, producto_id: str) -> Producto | None:
        with self._lock:
            p = self._find(producto_id)
            return replace(p) if p is not None else None

    def snapshot(self) -> dict[str, list[dict[str, Any]]]:
        with self._lock:
            return {
                "categorias": [c.to_dict() for c in self._categorias],
                "productos": [p.to_dict() for p in self._productos],
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._productos)

    def _find(self, producto_id: str) -> Producto | None:
        return next((p for p in self._productos if p.id == producto_id), None)

    # --- Mutations ---
    def asegurar_categoria(self, categoria_id: str, nombre: str, *, notificar: bool = True) -> bool:
        """Create the category unless one with that id exists. Returns True if created."""
        with self._lock:
            if any(c.id == categoria_id for c in self._categorias):
                return False
            self._categorias.append(Categoria(id=categoria_id, nombre=nombre))
        if notificar:
            self.notificar_cambio()
        return True

    def crear_categoria(self, nombre: str, categoria_id: str | None = None) -> Categoria:
        nombre = (nombre or "").strip()
        cid = slug_categoria(categoria_id or nombre)
        if not nombre or not cid:
            raise CatalogoError("Debes indicar un nombre y un identificador para la categoría")
        with self._lock:
            if any(c.id == cid for c in self._categorias):
                raise CatalogoError("Ya existe una categoría con ese identificador")
            cat = Categoria(id=cid, nombre=nombre)
            self._categorias.append(cat)
        self.notificar_cambio()
        return replace(cat)

    def agregar_productos(self, productos: Iterable[Producto], *, notificar: bool = True) -> int:
        nuevos = list(productos)
        if not nuevos:
            return 0
        with self._lock:
            self._productos.extend(nuevos)
        if notificar:
            self.notificar_cambio()
        return len(nuevos)

    def crear_producto(
        self,
        *,
        categoria_id: str,
        nombre: str,
        codigo: str = "",
        montos: dict[str, Any] | None = None,
    ) -> Producto:
        cid = (categoria_id or "").strip()
        if not cid:
            raise CatalogoError("Selecciona una categoría antes de agregar un producto")
        if not self.existe_categoria(cid):
            raise CatalogoError(f"Categoría inexistente: {cid}")
        nombre = (nombre or "").strip()
        if not nombre:
            raise CatalogoError("El producto necesita un nombre")

        nuevo_id = self.generar_id()
        codigo = (codigo or "").strip() or self.generar_id()[:6]
        montos = montos or {}
        valores: dict[str, Decimal] = {}
        for f in MONEY_FIELDS:
            parsed = a_monto(montos.get(f))
            valores[f] = parsed if parsed is not None else Decimal("0.00")

        p = Producto(id=nuevo_id, categoriaId=cid, codigo=codigo, nombre=nombre, **valores)
        with self._lock:
            self._productos.append(p)
        self.notificar_cambio()
        return replace(p)

    def actualizar_producto(self, producto_id: str, cambios: dict[str, Any]) -> Producto:
        """Apply edits; blank name/code keep the previous value, unreadable amounts are ignored."""
        with self._lock:
            p = self._find(producto_id)
            if p is None:
                raise CatalogoError("Producto no encontrado")
            categoria_id = str(cambios.get("categoriaId") or "").strip()
            if categoria_id and not any(c.id == categoria_id for c in self._categorias):
                raise CatalogoError(f"Categoría inexistente: {categoria_id}")

            if categoria_id:
                p.categoriaId = categoria_id
            nombre = str(cambios.get("nombre") or "").strip()
            if nombre:
                p.nombre = nombre
            codigo = str(cambios.get("codigo") or "").strip()
            if codigo:
                p.codigo = codigo
            for f in MONEY_FIELDS:
                if f not in cambios:
                    continue
                parsed = a_monto(cambios.get(f))
                if parsed is not None:
                    setattr(p, f, parsed)
            out = replace(p)
        self.notificar_cambio()
        return out

    def eliminar_producto(self, producto_id: str) -> bool:
        with self._lock:
            idx = next((i for i, p in enumerate(self._productos) if p.id == producto_id), -1)
            if idx < 0:
                return False
            del self._productos[idx]
        self.notificar_cambio()
        return True

    def reemplazar(self, categorias: Iterable[Categoria], productos: Iterable[Producto], *, notificar: bool = True) -> None:
        cats = list(categorias)
        prods = list(productos)
        with self._lock:
            self._categorias[:] = cats
            self._productos[:] = prods
        if notificar:
            self.notificar_cambio()

    def vaciar(self) -> None:
        self.reemplazar([], [])
