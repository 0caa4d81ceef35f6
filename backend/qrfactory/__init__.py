# backend/qrfactory/__init__.py
import logging

from flask import Flask
from sqlalchemy import event

from .config import Config
from .errors import register_error_handlers
from .extensions import db, migrate


def _enable_sqlite_wal(app: Flask) -> None:
    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if not uri.startswith("sqlite") or ":memory:" in uri:
        return

    @event.listens_for(db.engine, "connect")
    def _set_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401
    from .services import EXTENSION_KEY, build_services

    with app.app_context():
        _enable_sqlite_wal(app)

    services = build_services(app, db)
    app.extensions[EXTENSION_KEY] = services

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.customers import customers_bp
    from .routes.staff import staff_bp
    from .routes.assignments import assignments_bp
    from .routes.auth import auth_bp
    from .routes.audit import audit_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(staff_bp)
    app.register_blueprint(assignments_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(audit_bp)

    register_error_handlers(app)

    if app.config.get("AUTO_CREATE_DB"):
        with app.app_context():
            db.create_all()
            services.settings.ensure_defaults()

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
