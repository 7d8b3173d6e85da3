from __future__ import annotations

from decimal import Decimal
import logging
from typing import Any

from catalogo.consultas import (
    TIPO_CUOTA,
    TIPO_DERECHO,
    TODAS,
    buscar_opciones_pago,
    filtrar_productos,
    ordenar_productos,
)
from catalogo.errores import CatalogoError
from catalogo.importacion import ArchivoEntrante
from catalogo.numeros import decimal_a_json, interpretar_monto, interpretar_porcentaje, normalizar_numero
from catalogo.services import CatalogoService
from catalogo.ui.formatting import formato_importe

logger = logging.getLogger(__name__)


def _opt_decimal(value: Any) -> Decimal | None:
    """Filter bound from the UI: a number or shorthand text (15k, 2mil)."""
    if value is None or value == "":
        return None
    d = normalizar_numero(value)
    if d is not None:
        return d
    monto = interpretar_monto(value)
    return Decimal(monto.valor) if monto.valor is not None else None


class CatalogoBackend:
    """JSON API used by the browser UI.

    Methods are named after the JS calls; return values must be JSON-serializable.
    """

    def __init__(self, service: CatalogoService):
        self._service = service

    @property
    def _catalogo(self):
        return self._service.catalogo

    def getAppInfo(self):
        db_url = str(getattr(self._service.settings, "DATABASE_URL", "") or "")
        db_file = ""
        if db_url.startswith("sqlite:///"):
            db_file = db_url[len("sqlite:///") :]
        return {
            "app_name": self._service.settings.APP_NAME,
            "db_url": db_url,
            "db_file": db_file,
            "productos": len(self._catalogo),
        }

    def getCategories(self):
        return [c.to_dict() for c in self._catalogo.categorias()]

    def searchProducts(self, filtros: dict | None = None):
        f = filtros if isinstance(filtros, dict) else {}
        rows = filtrar_productos(
            self._catalogo.productos(),
            categoria=str(f.get("categoria") or TODAS),
            texto=str(f.get("q") or ""),
            precio_min=_opt_decimal(f.get("precio_min")),
            precio_max=_opt_decimal(f.get("precio_max")),
        )
        try:
            direccion = int(f.get("dir") or 1)
        except (TypeError, ValueError):
            direccion = 1
        rows = ordenar_productos(rows, f.get("sort") or None, direccion, self._catalogo.nombre_categoria)

        try:
            limit = int(f.get("limit") or 0)
        except (TypeError, ValueError):
            limit = 0
        if limit > 0:
            rows = rows[:limit]
        return {"ok": True, "total": len(rows), "productos": [p.to_dict() for p in rows]}

    def getProduct(self, producto_id: str):
        p = self._catalogo.get_producto(str(producto_id or ""))
        if p is None:
            return {"ok": False, "error": "Producto no encontrado"}
        out = p.to_dict()
        out["categoria"] = self._catalogo.nombre_categoria(p.categoriaId)
        return {"ok": True, "producto": out}

    def parseAmount(self, texto: str):
        monto = interpretar_monto(texto)
        return {
            "value": monto.valor,
            "suggestions": [{"label": s.label, "value": s.value} for s in monto.sugerencias],
        }

    def searchPaymentOptions(self, monto, tipo: str = TIPO_DERECHO, margen=5):
        target = _opt_decimal(monto)
        pct = interpretar_porcentaje(margen)
        tipo = tipo if tipo in (TIPO_DERECHO, TIPO_CUOTA) else TIPO_DERECHO
        prefs = self._service.get_preferencias()

        opciones = buscar_opciones_pago(
            self._catalogo.productos(),
            target,
            tipo=tipo,
            margen=pct if pct is not None else 0,
        )
        out = []
        for o in opciones:
            row = o.producto.to_dict()
            row["valorMatch"] = decimal_a_json(o.valor_match)
            row["valorMatchTexto"] = formato_importe(o.valor_match, prefs)
            row["tipoRef"] = o.tipo_ref
            out.append(row)
        return {"ok": True, "resultados": out}

    def createCategory(self, nombre: str, categoria_id: str | None = None):
        try:
            cat = self._catalogo.crear_categoria(str(nombre or ""), str(categoria_id) if categoria_id else None)
        except CatalogoError as e:
            return {"ok": False, "error": str(e)}
        return {"ok": True, "categoria": cat.to_dict()}

    def createProduct(self, data: dict | None):
        d = data if isinstance(data, dict) else {}
        try:
            p = self._catalogo.crear_producto(
                categoria_id=str(d.get("categoriaId") or ""),
                nombre=str(d.get("nombre") or ""),
                codigo=str(d.get("codigo") or ""),
                montos=d,
            )
        except CatalogoError as e:
            return {"ok": False, "error": str(e)}
        return {"ok": True, "producto": p.to_dict()}

    def updateProduct(self, producto_id: str, cambios: dict | None):
        if cambios is None:
            cambios = {}
        if not isinstance(cambios, dict):
            return {"ok": False, "error": "Cambios inválidos"}
        try:
            p = self._catalogo.actualizar_producto(str(producto_id or ""), cambios)
        except CatalogoError as e:
            return {"ok": False, "error": str(e)}
        return {"ok": True, "producto": p.to_dict()}

    def deleteProduct(self, producto_id: str):
        ok = self._catalogo.eliminar_producto(str(producto_id or ""))
        if not ok:
            return {"ok": False, "error": "Producto no encontrado"}
        return {"ok": True}

    def importPlanillas(self, archivos: list[ArchivoEntrante], categoria_id: str | None = None):
        if not archivos:
            return {"ok": False, "error": "No se seleccionaron archivos"}
        if categoria_id and not self._catalogo.existe_categoria(categoria_id):
            return {"ok": False, "error": f"Categoría inexistente: {categoria_id}"}
        res = self._service.importador.importar_lote(archivos, categoria_id or None)
        out = {"ok": res.importados > 0}
        out.update(res.to_dict())
        if not res.importados:
            out["error"] = "No se pudo importar ningún archivo"
        return out

    def importBase(self, contenido: bytes):
        try:
            res = self._service.importador.importar_base(contenido)
        except CatalogoError as e:
            return {"ok": False, "error": str(e)}
        return {"ok": True, "categorias": res.categorias, "productos": res.productos}

    def exportBase(self) -> str:
        return self._service.importador.exportar_base_json()

    def getSettings(self):
        return self._service.get_preferencias()

    def saveSettings(self, cambios: dict | None):
        if not isinstance(cambios, dict):
            return {"ok": False, "error": "Configuración inválida"}
        try:
            prefs = self._service.guardar_preferencias(cambios)
        except Exception as e:
            logger.exception("Error guardando configuración")
            return {"ok": False, "error": f"No se pudo guardar la configuración: {e}"}
        return {"ok": True, "settings": prefs}

    def resetAll(self, confirm_text: str = ""):
        if str(confirm_text or "").strip().upper() != "RESTABLECER":
            return {"ok": False, "error": "Escribe RESTABLECER para confirmar"}
        self._service.restablecer()
        return {"ok": True}
