# backend/subsidiary_hub/__init__.py
import logging

from flask import Flask, jsonify, request

from .config import Config
from .extensions import db, migrate
from .persistence import DatabaseNotReadyError, StorageError, get_state, init_database
from .validation import ValidationError


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)
    logging.getLogger(__name__).setLevel(level)


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    _configure_logging(app)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Pick the engine adapter, bind Flask-SQLAlchemy and probe the connection
    init_database(app)
    migrate.init_app(app, db)

    from .services.session_service import init_session_store
    init_session_store(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.subsidiaries import subsidiaries_bp
    from .routes.inventory import inventory_bp
    from .routes.sales import sales_bp
    from .routes.users import users_bp
    from .routes.activity import activity_bp
    from .routes.reports import reports_bp
    from .routes.settings import settings_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(subsidiaries_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(activity_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(system_bp)

    @app.before_request
    def require_database_ready():
        if request.path.startswith("/api") and not get_state().ready:
            return jsonify({"message": "Database connection not initialized"}), 503
        return None

    @app.errorhandler(DatabaseNotReadyError)
    def handle_not_ready(e):
        return jsonify({"message": str(e)}), 503

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({"message": str(e)}), 400

    @app.errorhandler(StorageError)
    def handle_storage_error(e):
        # Already logged by execute_query
        return jsonify({"message": str(e)}), 500

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PATCH,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    from .services.auth_service import schedule_default_admin
    schedule_default_admin(app)

    return app
