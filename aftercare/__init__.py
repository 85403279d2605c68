# aftercare/__init__.py
import logging

from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    # Overrides must land before db.init_app: the engine is built from config there
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.returns import returns_bp
    from .routes.repairs import repairs_bp
    from .routes.tickets import tickets_bp
    from .routes.chat import chat_bp
    from .routes.appointments import appointments_bp
    from .routes.feedback import feedback_bp, goodwill_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(returns_bp)
    app.register_blueprint(repairs_bp)
    app.register_blueprint(tickets_bp)
    app.register_blueprint(chat_bp)
    app.register_blueprint(appointments_bp)
    app.register_blueprint(feedback_bp)
    app.register_blueprint(goodwill_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
