from __future__ import annotations


class CatalogoError(RuntimeError):
    """Error de dominio del catálogo (datos de edición inválidos, duplicados, etc.)."""


class ImportacionError(CatalogoError):
    """Falla al leer o interpretar un archivo de importación."""


class PlanillaInvalidaError(ImportacionError):
    pass


class BaseInvalidaError(ImportacionError):
    pass


class PdfNoDisponibleError(ImportacionError):
    """pdfplumber no está instalado en este entorno."""


class PdfInvalidoError(ImportacionError):
    pass
