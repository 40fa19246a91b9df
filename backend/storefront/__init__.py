# backend/storefront/__init__.py
import logging

from flask import Flask

from . import messages
from .config import Config
from .extensions import db, migrate
from .responses import error_response


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

    # One Kara client per process; tests pass KARA_TRANSPORT to stub HTTP
    from .services.kara_client import init_kara_client
    init_kara_client(app, transport=app.config.get("KARA_TRANSPORT"))

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.cart import cart_bp
    from .routes.orders import orders_bp
    from .routes.sync import sync_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(sync_bp)

    @app.errorhandler(404)
    def not_found(_error):
        return error_response(messages.NOT_FOUND, 404)

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return error_response(messages.METHOD_NOT_ALLOWED, 405)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
