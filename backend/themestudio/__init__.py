from flask import Flask, send_file, current_app
from .config import config_by_name
from .extensions import db, migrate, jwt, section_cache, themes
from .api.v1 import v1_bp
from .middleware.store_middleware import store_middleware
from .errors import register_error_handlers
from flask_swagger_ui import get_swaggerui_blueprint
import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("themestudio").setLevel(level)
    app.logger.setLevel(level)


def create_app(config_name: str = "development") -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    configure_logging(app)

    # -------------------------------------------------
    # Extensions
    # -------------------------------------------------
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    section_cache.init_app(app)
    themes.init_app(app)

    from . import models  # noqa: F401  (register tables with the metadata)

    # -------------------------------------------------
    # Middleware
    # -------------------------------------------------
    store_middleware(app)

    # -------------------------------------------------
    # API Blueprints
    # -------------------------------------------------
    app.register_blueprint(v1_bp, url_prefix="/api/v1")
    register_error_handlers(app)

    # -------------------------------------------------
    # Serve OpenAPI YAML (PUBLIC, NO STORE)
    # -------------------------------------------------
    @app.route("/openapi/studio.yaml", methods=["GET"], endpoint="openapi_studio")
    def serve_openapi():
        spec_path = os.path.join(
            current_app.root_path,
            "api",
            "v1",
            "studio_openapi.yaml",
        )

        if not os.path.exists(spec_path):
            raise FileNotFoundError("studio_openapi.yaml not found")

        return send_file(
            spec_path,
            mimetype="application/yaml",
            as_attachment=False,
        )

    # -------------------------------------------------
    # Swagger UI
    # -------------------------------------------------
    SWAGGER_URL = "/swagger"
    API_URL = "/openapi/studio.yaml"

    swaggerui_blueprint = get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={
            "app_name": "Theme Studio API",
            "deepLinking": True,
            "persistAuthorization": True,
        },
    )

    app.register_blueprint(swaggerui_blueprint, url_prefix=SWAGGER_URL)

    app.logger.info("Theme Studio ready (config=%s, themes=%s)", config_name, app.config["THEMES_DIR"])
    return app
