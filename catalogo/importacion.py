from __future__ import annotations

from collections.abc import Callable, Iterable
import copy
from dataclasses import dataclass, field
import json
import logging
from pathlib import PurePath
from typing import Any

from catalogo.catalogo import Catalogo
from catalogo.errores import BaseInvalidaError, PlanillaInvalidaError
from catalogo.pdf_tabla import extraer_productos
from catalogo.pdf_texto import MODO_LINEAS, extraer_texto_pdf
from catalogo.planillas import extraer_filas, leer_filas_xlsx, parse_planilla_rows
from catalogo.tipos import Categoria, Producto

logger = logging.getLogger(__name__)

TIPO_JSON = "json"
TIPO_PDF = "pdf"
TIPO_XLSX = "xlsx"

_EXTENSIONES = {".json": TIPO_JSON, ".pdf": TIPO_PDF, ".xlsx": TIPO_XLSX}
_MIME = {
    "application/pdf": TIPO_PDF,
    "application/json": TIPO_JSON,
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": TIPO_XLSX,
}


@dataclass(frozen=True)
class ArchivoEntrante:
    nombre: str
    contenido: bytes
    # Declared MIME type (browser upload), may be empty
    tipo: str = ""


@dataclass(frozen=True)
class ResultadoImportacion:
    importados: int = 0
    agregados: int = 0
    errores: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"imported": self.importados, "added": self.agregados, "errors": list(self.errores)}


@dataclass(frozen=True)
class ResultadoBase:
    categorias: int
    productos: int


def tipo_archivo(archivo: ArchivoEntrante) -> str:
    declared = (archivo.tipo or "").split(";", 1)[0].strip().lower()
    if declared in _MIME:
        return _MIME[declared]
    return _EXTENSIONES.get(PurePath(archivo.nombre or "").suffix.lower(), TIPO_JSON)


def categoria_desde_nombre(nombre: str, tipo: str) -> tuple[str, str]:
    """(id, display name) for the category a file maps to: base name without its extension."""
    base = PurePath(nombre or "").name
    ext = f".{tipo}"
    if base.lower().endswith(ext):
        base = base[: -len(ext)]
    return base.lower(), base


def _leer_json(contenido: bytes | str) -> Any:
    try:
        text = contenido.decode("utf-8-sig") if isinstance(contenido, bytes) else contenido
        return json.loads(text)
    except ValueError as e:
        # UnicodeDecodeError is a ValueError too
        raise PlanillaInvalidaError(f"JSON inválido ({e})") from e


class Importador:
    """Batch import of planillas (JSON, XLSX, PDF) and whole-base import/export."""

    def __init__(
        self,
        catalogo: Catalogo,
        *,
        get_settings: Callable[[], dict[str, Any]] | None = None,
        on_change: Callable[[], None] | None = None,
        pdf_modo: str = MODO_LINEAS,
        pdf_tolerancia: float = 2.0,
        xlsx_hoja: str = "",
        leer_pdf: Callable[..., str] = extraer_texto_pdf,
    ):
        self.catalogo = catalogo
        self._get_settings = get_settings or dict
        self._on_change = on_change or catalogo.notificar_cambio
        self.pdf_modo = pdf_modo
        self.pdf_tolerancia = pdf_tolerancia
        self.xlsx_hoja = xlsx_hoja
        self._leer_pdf = leer_pdf

    def _productos_de(self, archivo: ArchivoEntrante, tipo: str, categoria_id: str) -> list[Producto]:
        generar_id = self.catalogo.generar_id
        if tipo == TIPO_PDF:
            texto = self._leer_pdf(archivo.contenido, modo=self.pdf_modo, tolerancia=self.pdf_tolerancia)
            return extraer_productos(texto, categoria_id, generar_id)
        if tipo == TIPO_XLSX:
            rows = leer_filas_xlsx(archivo.contenido, self.xlsx_hoja)
        else:
            rows = extraer_filas(_leer_json(archivo.contenido))
        productos, _added = parse_planilla_rows(rows, categoria_id, generar_id)
        return productos

    def importar_archivo(self, archivo: ArchivoEntrante, categoria_id: str | None = None) -> int:
        """Import one file; returns products added. Raises on unreadable content."""
        tipo = tipo_archivo(archivo)
        cat_id, cat_nombre = categoria_desde_nombre(archivo.nombre, tipo)
        if categoria_id:
            cat_id = categoria_id
            cat_nombre = self.catalogo.nombre_categoria(categoria_id) or categoria_id
        if not cat_id:
            raise PlanillaInvalidaError("No se pudo derivar la categoría del nombre de archivo")

        productos = self._productos_de(archivo, tipo, cat_id)
        # Category only after the content was read: broken files leave no trace.
        self.catalogo.asegurar_categoria(cat_id, cat_nombre, notificar=False)
        added = self.catalogo.agregar_productos(productos, notificar=False)
        logger.info("Importado %s (%s): %d productos en '%s'", archivo.nombre, tipo, added, cat_id)
        return added

    def importar_lote(self, archivos: Iterable[ArchivoEntrante], categoria_id: str | None = None) -> ResultadoImportacion:
        importados = 0
        agregados = 0
        errores: list[str] = []
        for archivo in archivos:
            try:
                agregados += self.importar_archivo(archivo, categoria_id)
                importados += 1
            except Exception as e:
                logger.warning("Error importando %s: %s", archivo.nombre, e)
                errores.append(f"{archivo.nombre}: {e}")

        if agregados > 0:
            self._on_change()
        logger.info("Lote: %d archivos, %d productos, %d errores", importados, agregados, len(errores))
        return ResultadoImportacion(importados=importados, agregados=agregados, errores=errores)

    def importar_base(self, contenido: bytes | str | dict[str, Any]) -> ResultadoBase:
        """Replace categories and products with a base document.

        The catalog is untouched when the document is rejected.
        """
        if isinstance(contenido, dict):
            data: Any = contenido
        else:
            try:
                data = _leer_json(contenido)
            except PlanillaInvalidaError as e:
                raise BaseInvalidaError(f"JSON base inválido: {e}") from e

        if not isinstance(data, dict):
            raise BaseInvalidaError("JSON base inválido: se esperaba un objeto")
        missing = [k for k in ("categorias", "productos") if not isinstance(data.get(k), list)]
        if missing:
            raise BaseInvalidaError(f"JSON base inválido: falta el arreglo {', '.join(missing)}")

        categorias: list[Categoria] = []
        vistos: set[str] = set()
        for i, raw in enumerate(data["categorias"]):
            if not isinstance(raw, dict):
                raise BaseInvalidaError(f"JSON base inválido: categoría #{i + 1} no es un objeto")
            cat = Categoria.from_dict(raw)
            if not cat.id:
                raise BaseInvalidaError(f"JSON base inválido: categoría #{i + 1} sin id")
            if cat.id in vistos:
                raise BaseInvalidaError(f"JSON base inválido: categoría repetida '{cat.id}'")
            vistos.add(cat.id)
            categorias.append(cat)

        productos: list[Producto] = []
        for i, raw in enumerate(data["productos"]):
            if not isinstance(raw, dict):
                raise BaseInvalidaError(f"JSON base inválido: producto #{i + 1} no es un objeto")
            p = Producto.from_dict(raw)
            if not p.id:
                p.id = self.catalogo.generar_id()
            productos.append(p)

        self.catalogo.reemplazar(categorias, productos)
        logger.info("Base reemplazada: %d categorías, %d productos", len(categorias), len(productos))
        return ResultadoBase(categorias=len(categorias), productos=len(productos))

    def exportar_base(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.catalogo.snapshot())
        payload["settings"] = copy.deepcopy(self._get_settings())
        return payload

    def exportar_base_json(self) -> str:
        return json.dumps(self.exportar_base(), ensure_ascii=False)
