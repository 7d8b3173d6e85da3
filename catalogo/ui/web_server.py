from __future__ import annotations

from pathlib import Path

from flask import Flask, Response, jsonify, request

from catalogo.importacion import ArchivoEntrante
from catalogo.services import CatalogoService
from catalogo.ui.backend import CatalogoBackend


def create_app(service: CatalogoService) -> Flask:
    settings = service.settings
    backend = CatalogoBackend(service)

    app = Flask(__name__, static_folder=None)

    @app.get("/")
    @app.get("/health")
    def health() -> Response:
        return jsonify({"ok": True, "app": settings.APP_NAME})

    def _ok(payload):
        return jsonify(payload)

    def _body() -> dict:
        # Non-object JSON bodies (lists, strings) are treated as empty.
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}

    # --- JSON API ---
    @app.get("/api/getAppInfo")
    def api_get_app_info():
        return _ok(backend.getAppInfo())

    @app.get("/api/getCategories")
    def api_get_categories():
        return _ok(backend.getCategories())

    @app.post("/api/searchProducts")
    def api_search_products():
        data = _body()
        return _ok(backend.searchProducts(data))

    @app.get("/api/getProduct")
    def api_get_product():
        return _ok(backend.getProduct(request.args.get("id", "")))

    @app.post("/api/parseAmount")
    def api_parse_amount():
        data = _body()
        return _ok(backend.parseAmount(data.get("text", "")))

    @app.post("/api/searchPaymentOptions")
    def api_search_payment_options():
        data = _body()
        return _ok(backend.searchPaymentOptions(data.get("monto"), data.get("tipo", "di"), data.get("margen", 5)))

    @app.post("/api/createCategory")
    def api_create_category():
        data = _body()
        return _ok(backend.createCategory(data.get("nombre", ""), data.get("id")))

    @app.post("/api/createProduct")
    def api_create_product():
        data = _body()
        return _ok(backend.createProduct(data))

    @app.post("/api/updateProduct")
    def api_update_product():
        data = _body()
        return _ok(backend.updateProduct(data.get("id"), data.get("cambios")))

    @app.post("/api/deleteProduct")
    def api_delete_product():
        data = _body()
        return _ok(backend.deleteProduct(data.get("id")))

    @app.get("/api/getSettings")
    def api_get_settings():
        return _ok(backend.getSettings())

    @app.post("/api/saveSettings")
    def api_save_settings():
        data = request.get_json(silent=True)
        return _ok(backend.saveSettings(data))

    @app.post("/api/resetAll")
    def api_reset_all():
        data = _body()
        return _ok(backend.resetAll(data.get("confirm_text", "")))

    # --- Upload endpoints ---
    @app.post("/api/importPlanillas")
    def api_import_planillas():
        archivos: list[ArchivoEntrante] = []
        for f in request.files.getlist("files"):
            if f is None or not f.filename:
                continue
            archivos.append(ArchivoEntrante(nombre=f.filename, contenido=f.read(), tipo=f.mimetype or ""))
        categoria = (request.form.get("categoria") or "").strip() or None
        return _ok(backend.importPlanillas(archivos, categoria))

    @app.post("/api/importBase")
    def api_import_base():
        f = request.files.get("file")
        if f is None or not f.filename:
            return _ok({"ok": False, "error": "Archivo inválido"})
        return _ok(backend.importBase(f.read()))

    @app.get("/api/exportBase")
    def api_export_base():
        filename = request.args.get("filename") or settings.BASE_EXPORT_FILENAME
        return Response(
            backend.exportBase(),
            mimetype="application/json",
            headers={"Content-Disposition": f'attachment; filename="{Path(filename).name}"'},
        )

    return app
