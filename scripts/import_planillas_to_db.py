from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from catalogo.db import create_engine_from_url, init_db, make_session_factory
from catalogo.importacion import ArchivoEntrante
from catalogo.services import abrir_servicio
from catalogo.settings import Settings


def main() -> int:
    p = argparse.ArgumentParser(description="Importa planillas (JSON, XLSX, PDF) al catálogo")
    p.add_argument("files", nargs="+", type=Path, help="Planillas a importar")
    p.add_argument("--categoria", default=None, help="Categoría existente (por defecto: nombre de archivo)")
    args = p.parse_args()

    settings = Settings()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    settings.ensure_instance()

    engine = create_engine_from_url(settings.DATABASE_URL)
    init_db(engine)
    sf = make_session_factory(engine)

    archivos: list[ArchivoEntrante] = []
    for path in args.files:
        if not path.is_file():
            print("skip (not found):", path)
            continue
        archivos.append(ArchivoEntrante(nombre=path.name, contenido=path.read_bytes()))

    with abrir_servicio(sf, settings) as service:
        if args.categoria and not service.catalogo.existe_categoria(args.categoria):
            print("categoría inexistente:", args.categoria)
            return 2
        res = service.importador.importar_lote(archivos, args.categoria)

    print("imported", res.importados, "added", res.agregados)
    for err in res.errores:
        print("error:", err)
    return 0 if res.importados else 1


if __name__ == "__main__":
    raise SystemExit(main())
