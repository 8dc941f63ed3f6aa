# backend/shoppos/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def _allowed_origins(app: Flask) -> set[str]:
    raw = app.config.get("CORS_ALLOWED_ORIGINS") or ""
    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.sales import sales_bp
    from .routes.customers import customers_bp
    from .routes.credits import credits_bp
    from .routes.expenses import expenses_bp
    from .routes.cash_cuts import cash_cuts_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(credits_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(cash_cuts_bp)
    app.register_blueprint(reports_bp)

    allowed_origins = _allowed_origins(app)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
