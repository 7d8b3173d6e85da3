from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_DEFAULT_DATABASE_URL = f"sqlite:///{(Path('instance') / 'catalogo.sqlite').as_posix()}"


@dataclass(frozen=True)
class Settings:
    # App
    APP_NAME: str = os.environ.get("APP_NAME", "Catalogo Planes")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # Storage
    INSTANCE_DIR: Path = Path(os.environ.get("INSTANCE_DIR", "instance")).resolve()
    DATABASE_URL: str = os.environ.get("DATABASE_URL", _DEFAULT_DATABASE_URL)
    # Debounce window for catalog writes (milliseconds)
    PERSIST_DELAY_MS: int = int(os.environ.get("PERSIST_DELAY_MS", "150"))

    # Import
    # "lineas" rebuilds visual rows from word baselines; "simple" joins words per page.
    PDF_TEXT_MODE: str = os.environ.get("PDF_TEXT_MODE", "lineas")
    PDF_LINE_TOLERANCE: float = float(os.environ.get("PDF_LINE_TOLERANCE", "2.0"))
    XLSX_WORKSHEET_NAME: str = os.environ.get("XLSX_WORKSHEET_NAME", "")

    # Export
    BASE_EXPORT_FILENAME: str = os.environ.get("BASE_EXPORT_FILENAME", "base.json")

    def _default_windows_instance_dir(self) -> Path:
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA")
        if not base:
            base = str(Path.home())
        safe = "".join(c for c in (self.APP_NAME or "CatalogoPlanes") if c.isalnum() or c in (" ", "-", "_"))
        safe = safe.strip().replace(" ", "_") or "CatalogoPlanes"
        return (Path(base) / safe / "instance").resolve()

    def __post_init__(self) -> None:
        db_url_env_set = (
            os.environ.get("DATABASE_URL") is not None
            or self.DATABASE_URL != _DEFAULT_DATABASE_URL
        )

        # When packaged as an .exe, default to a per-user writable instance folder.
        if getattr(sys, "frozen", False) and os.environ.get("INSTANCE_DIR") is None:
            object.__setattr__(self, "INSTANCE_DIR", self._default_windows_instance_dir())

        object.__setattr__(self, "INSTANCE_DIR", Path(self.INSTANCE_DIR).resolve())

        mode = (self.PDF_TEXT_MODE or "").strip().casefold()
        object.__setattr__(self, "PDF_TEXT_MODE", mode if mode in ("simple", "lineas") else "lineas")

        # If DATABASE_URL was not explicitly provided, always place the DB inside INSTANCE_DIR.
        if not db_url_env_set:
            abs_db = (self.INSTANCE_DIR / "catalogo.sqlite").resolve()
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{abs_db.as_posix()}")
            return

        db = str(self.DATABASE_URL or "").strip()
        if not db:
            abs_db = (self.INSTANCE_DIR / "catalogo.sqlite").resolve()
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{abs_db.as_posix()}")
            return

        # Normalize relative SQLite URLs so they don't depend on the process working directory.
        # In-memory URLs (sqlite:///:memory:) are left alone.
        if db.startswith("sqlite:///") and not db.startswith("sqlite:////"):
            path_part = db[len("sqlite:///") :]
            if "?" in path_part:
                path_part = path_part.split("?", 1)[0]
            if path_part in ("", ":memory:"):
                return

            p = Path(path_part)
            if not p.is_absolute():
                project_root = Path(__file__).resolve().parents[1]
                abs_path = (project_root / p).resolve()
                object.__setattr__(self, "DATABASE_URL", f"sqlite:///{abs_path.as_posix()}")

    @property
    def persist_delay_seconds(self) -> float:
        return max(0, int(self.PERSIST_DELAY_MS)) / 1000.0

    def ensure_instance(self) -> None:
        self.INSTANCE_DIR.mkdir(parents=True, exist_ok=True)
