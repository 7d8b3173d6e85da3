from pathlib import Path

from catalogo.settings import Settings


def test_memoria_se_respeta(tmp_path):
    s = Settings(INSTANCE_DIR=tmp_path, DATABASE_URL="sqlite:///:memory:")
    assert s.DATABASE_URL == "sqlite:///:memory:"


def test_sqlite_relativo_se_vuelve_absoluto(tmp_path):
    s = Settings(INSTANCE_DIR=tmp_path, DATABASE_URL="sqlite:///datos/c.sqlite")
    path = Path(s.DATABASE_URL[len("sqlite:///") :])
    assert path.is_absolute()
    assert path.name == "c.sqlite"


def test_modo_pdf_y_retardo(tmp_path):
    s = Settings(INSTANCE_DIR=tmp_path, PDF_TEXT_MODE=" SIMPLE ", PERSIST_DELAY_MS=250)
    assert s.PDF_TEXT_MODE == "simple"
    assert s.persist_delay_seconds == 0.25
    assert Settings(INSTANCE_DIR=tmp_path, PDF_TEXT_MODE="otro").PDF_TEXT_MODE == "lineas"


def test_ensure_instance(tmp_path):
    s = Settings(INSTANCE_DIR=tmp_path / "inst", DATABASE_URL="sqlite:///:memory:")
    s.ensure_instance()
    assert (tmp_path / "inst").is_dir()
