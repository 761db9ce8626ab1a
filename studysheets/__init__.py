"""
StudySheets – Flask application factory.
Shareable study sheets with access codes, progress tracking and reactions.
"""
import logging
import os

from flask import Flask, jsonify
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from werkzeug.exceptions import HTTPException

from studysheets.config import config
from studysheets.extensions import db, login_manager, csrf, limiter, migrate


def create_app(config_name: str = "default") -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name])

    # Ensure instance directory exists (SQLite lives here)
    os.makedirs(app.instance_path, exist_ok=True)

    _configure_logging(app)

    # ── Initialise extensions ────────────────────────────────────────────────
    db.init_app(app)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
    migrate.init_app(app, db)

    if app.config.get("TALISMAN_ENABLED"):
        from flask_talisman import Talisman
        Talisman(app, **app.config.get("TALISMAN_CONFIG", {}))

    # ── Register blueprints ──────────────────────────────────────────────────
    from studysheets.blueprints.auth import auth_bp
    from studysheets.blueprints.sheets import sheets_bp
    from studysheets.blueprints.exams import exams_bp

    # JSON-only API: session cookie is SameSite=Lax and forms run with csrf=False
    for bp in (auth_bp, sheets_bp, exams_bp):
        csrf.exempt(bp)
        app.register_blueprint(bp)

    # ── Auth + error handlers ────────────────────────────────────────────────
    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify(error="Please sign in first.", kind="Unauthorized", retryable=False), 401

    from studysheets.utils.errors import SheetError, StoreUnavailable

    @app.errorhandler(SheetError)
    def sheet_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def http_error(e):
        if e.code is None or e.code < 400:
            return e  # routing redirects pass through untouched
        return jsonify(error=e.description, kind=e.name.replace(" ", ""), retryable=e.code == 429), e.code

    # Lazy loads in views run outside the services' store_guard
    @app.errorhandler(OperationalError)
    @app.errorhandler(PoolTimeoutError)
    def store_unavailable(e):
        db.session.rollback()
        app.logger.warning("Store unavailable: %s", e)
        return jsonify(StoreUnavailable().to_dict()), StoreUnavailable.status_code

    @app.errorhandler(500)
    def internal_error(e):
        db.session.rollback()
        app.logger.error("Unhandled error: %r", getattr(e, "original_exception", e))
        return jsonify(error="Something went wrong.", kind="InternalServerError", retryable=False), 500

    # ── Database ─────────────────────────────────────────────────────────────
    with app.app_context():
        # Register all models with SQLAlchemy before create_all().
        import importlib
        importlib.import_module("studysheets.models")
        db.create_all()

    return app


def _configure_logging(app: Flask) -> None:
    """Give the studysheets.* loggers a level and, outside debug, a stream handler."""
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    pkg_log = logging.getLogger("studysheets")
    pkg_log.setLevel(level)
    if not pkg_log.handlers and not app.testing:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s [%(name)s] %(message)s"
        ))
        pkg_log.addHandler(handler)
