from __future__ import annotations

from contextlib import contextmanager
import copy
import logging
import threading
from typing import Any, Iterator

from sqlalchemy.orm import Session, sessionmaker

from catalogo.catalogo import Catalogo
from catalogo.db import session_scope
from catalogo.importacion import Importador
from catalogo.persistencia import PersistenciaDiferida
from catalogo.preferencias import DEFAULT_PREFERENCIAS, merge_deep, merge_preferencias
from catalogo.repos import CatalogoRepo
from catalogo.settings import Settings

logger = logging.getLogger(__name__)


class CatalogoService:
    """Wires the catalog, its importer and its SQLite persistence together."""

    def __init__(self, session_factory: sessionmaker[Session], settings: Settings):
        self._session_factory = session_factory
        self.settings = settings
        self.catalogo = Catalogo()
        self.persistencia = PersistenciaDiferida(
            self.guardar_catalogo, settings.persist_delay_seconds, habilitada=False
        )
        self.catalogo.set_on_change(self.persistencia.programar)
        self._preferencias: dict[str, Any] = copy.deepcopy(DEFAULT_PREFERENCIAS)
        self._prefs_lock = threading.Lock()
        self.importador = Importador(
            self.catalogo,
            get_settings=self.get_preferencias,
            pdf_modo=settings.PDF_TEXT_MODE,
            pdf_tolerancia=settings.PDF_LINE_TOLERANCE,
            xlsx_hoja=settings.XLSX_WORKSHEET_NAME,
        )

    def cargar(self) -> None:
        with session_scope(self._session_factory) as session:
            repo = CatalogoRepo(session)
            categorias, productos = repo.cargar()
            stored = repo.cargar_preferencias()
        self.catalogo.reemplazar(categorias, productos, notificar=False)
        with self._prefs_lock:
            self._preferencias = merge_preferencias(stored)
        self.persistencia.habilitar()
        logger.info("Catálogo cargado: %d categorías, %d productos", len(categorias), len(productos))

    def guardar_catalogo(self) -> None:
        snap_cats = self.catalogo.categorias()
        snap_prods = self.catalogo.productos()
        with session_scope(self._session_factory) as session:
            CatalogoRepo(session).guardar(snap_cats, snap_prods)
        logger.debug("Catálogo guardado: %d productos", len(snap_prods))

    def get_preferencias(self) -> dict[str, Any]:
        with self._prefs_lock:
            return copy.deepcopy(self._preferencias)

    def guardar_preferencias(self, cambios: dict[str, Any]) -> dict[str, Any]:
        with self._prefs_lock:
            prefs = merge_preferencias(merge_deep(copy.deepcopy(self._preferencias), cambios))
            self._preferencias = prefs
        with session_scope(self._session_factory) as session:
            CatalogoRepo(session).guardar_preferencias(prefs)
        return copy.deepcopy(prefs)

    def restablecer(self) -> None:
        """Factory reset: empty catalog and default settings."""
        self.persistencia.deshabilitar()
        self.catalogo.vaciar()
        with self._prefs_lock:
            self._preferencias = copy.deepcopy(DEFAULT_PREFERENCIAS)
        with session_scope(self._session_factory) as session:
            repo = CatalogoRepo(session)
            repo.guardar([], [])
            repo.borrar_preferencias()
        self.persistencia.habilitar()
        logger.info("Catálogo restablecido")


@contextmanager
def abrir_servicio(session_factory: sessionmaker[Session], settings: Settings) -> Iterator[CatalogoService]:
    """Load the catalog and guarantee pending changes are written on exit."""
    service = CatalogoService(session_factory, settings)
    service.cargar()
    with service.persistencia:
        yield service
