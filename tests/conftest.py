from __future__ import annotations

import json

import pytest

from catalogo.catalogo import Catalogo
from catalogo.db import create_engine_from_url, init_db, make_session_factory
from catalogo.services import CatalogoService
from catalogo.settings import Settings


class Ids:
    """Deterministic id generator: p1, p2, ..."""

    def __init__(self, prefix: str = "p"):
        self.prefix = prefix
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"{self.prefix}{self.n}"


@pytest.fixture()
def ids() -> Ids:
    return Ids()


@pytest.fixture()
def catalogo(ids) -> Catalogo:
    return Catalogo(generar_id=ids)


@pytest.fixture()
def settings(tmp_path) -> Settings:
    # Long debounce: tests flush explicitly instead of racing the timer thread.
    return Settings(
        INSTANCE_DIR=tmp_path,
        DATABASE_URL="sqlite:///:memory:",
        PERSIST_DELAY_MS=60_000,
    )


@pytest.fixture()
def session_factory(settings):
    engine = create_engine_from_url(settings.DATABASE_URL)
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture()
def service(session_factory, settings):
    svc = CatalogoService(session_factory, settings)
    svc.cargar()
    yield svc
    svc.persistencia.deshabilitar()


def planilla_bytes(rows) -> bytes:
    return json.dumps(rows, ensure_ascii=False).encode("utf-8")
