from __future__ import annotations

import argparse
import logging
import socket

from catalogo.db import create_engine_from_url, init_db, make_session_factory
from catalogo.services import abrir_servicio
from catalogo.settings import Settings
from catalogo.ui.web_server import create_app


def _get_lan_ip() -> str:
    # Tries to infer the primary LAN IP by opening a UDP socket.
    # Does not send data.
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            s.connect(("8.8.8.8", 80))
            ip = s.getsockname()[0]
            if ip:
                return ip
        finally:
            s.close()
    except OSError:
        pass
    return "127.0.0.1"


def _ensure_port_free(host: str, port: int) -> bool:
    # Returns True if we can bind (port free), False otherwise.
    try:
        s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((host, port))
            return True
        finally:
            s.close()
    except OSError:
        return False


def main() -> int:
    p = argparse.ArgumentParser(description="Catalogo Planes - Web server (LAN)")
    p.add_argument("--host", default="0.0.0.0", help="Bind host (use 0.0.0.0 for LAN)")
    p.add_argument("--port", type=int, default=8000, help="Port")
    p.add_argument("--debug", action="store_true", help="Flask debug mode")
    args = p.parse_args()

    settings = Settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not _ensure_port_free(args.host, args.port):
        print(f"El servidor ya está iniciado (o el puerto está ocupado): {args.host}:{args.port}")
        return 2

    settings.ensure_instance()
    engine = create_engine_from_url(settings.DATABASE_URL)
    init_db(engine)
    session_factory = make_session_factory(engine)

    lan_ip = _get_lan_ip() if args.host in ("0.0.0.0", "::") else args.host
    print(
        "Servidor iniciado.\n\n"
        f"Abre en el navegador:\nhttp://{lan_ip}:{args.port}/\n\n"
        f"(Prueba rápida: http://{lan_ip}:{args.port}/health)"
    )

    # Pending catalog changes are written when the server stops.
    with abrir_servicio(session_factory, settings) as service:
        app = create_app(service)
        # The reloader would fork a second process with its own catalog copy.
        app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
