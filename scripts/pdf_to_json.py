from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from catalogo.errores import ImportacionError
from catalogo.pdf_tabla import documento_conversion, extraer_filas
from catalogo.pdf_texto import extraer_texto_pdf
from catalogo.settings import Settings


def main() -> int:
    p = argparse.ArgumentParser(description="Convierte una planilla PDF a JSON")
    p.add_argument("pdf", type=Path)
    p.add_argument("-o", "--output", type=Path, default=None, help="Archivo de salida (por defecto: <pdf>.json)")
    args = p.parse_args()

    settings = Settings()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    try:
        texto = extraer_texto_pdf(
            args.pdf.read_bytes(), modo=settings.PDF_TEXT_MODE, tolerancia=settings.PDF_LINE_TOLERANCE
        )
    except (OSError, ImportacionError) as e:
        print("error:", e)
        return 1

    doc = documento_conversion(args.pdf.name, extraer_filas(texto))
    out = args.output or args.pdf.with_suffix(".json")
    out.write_text(json.dumps(doc, ensure_ascii=False, indent=2), encoding="utf-8")

    print("items", doc["itemCount"], "->", out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
