# backend/purchase_portal/__init__.py
from flask import Flask, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException, NotFound

from .config import Config
from .extensions import db, migrate
from .validation import ConflictError, NotFoundError, ValidationError

__version__ = "1.0.0"


def _error(message: str, reason: str, status: int):
    return jsonify({"error": message, "reason": reason}), status


def _build_engines(app: Flask) -> None:
    """Wire store, dispatcher and engines once per app."""
    from .services.admission_service import AdmissionService
    from .services.email_service import build_mailer
    from .services.identity_service import build_identity_verifier
    from .services.lifecycle_service import LifecycleEngine
    from .services.notification_service import NotificationDispatcher
    from .services.reminder_service import ReminderSweep
    from .services.request_store import RequestStore
    from .time_utils import utcnow

    clock = app.config.get("CLOCK") or utcnow
    dispatcher = NotificationDispatcher(
        build_mailer(app.config),
        admin_email=app.config.get("ADMIN_EMAIL") or "",
        rebate_email=app.config.get("REBATE_EMAIL") or "",
    )
    store = RequestStore(db.session)

    app.extensions["dispatcher"] = dispatcher
    app.extensions["request_store"] = store
    app.extensions["identity_verifier"] = build_identity_verifier(app.config)
    app.extensions["lifecycle"] = LifecycleEngine(
        store,
        dispatcher,
        default_sender_email=app.config.get("ADMIN_EMAIL") or "",
        clock=clock,
    )
    app.extensions["reminders"] = ReminderSweep(
        store,
        dispatcher,
        tz_name=app.config["REMINDER_TIMEZONE"],
        clock=clock,
    )
    app.extensions["admission"] = AdmissionService(db.session, dispatcher, clock=clock)


def _start_reminder_trigger(app: Flask) -> None:
    from .services.reminder_service import DailyTrigger

    def job():
        with app.app_context():
            app.extensions["reminders"].run()

    trigger = DailyTrigger(
        job,
        hour=app.config["REMINDER_HOUR"],
        minute=app.config["REMINDER_MINUTE"],
        tz_name=app.config["REMINDER_TIMEZONE"],
    )
    trigger.start()
    app.extensions["reminder_trigger"] = trigger


def _register_error_handlers(app: Flask) -> None:
    from .services.concurrency import DependencyFailure

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return _error(str(e), e.reason, 404)

    @app.errorhandler(ConflictError)
    def handle_conflict(e):
        # Duplicate names surface as a plain client error.
        return _error(str(e), e.reason, 400)

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return _error(str(e), e.reason, 400)

    @app.errorhandler(DependencyFailure)
    def handle_dependency(e):
        app.logger.error("Dependency failure on %s %s: %s", request.method, request.path, e)
        return _error(str(e), e.reason, 503)

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e):
        db.session.rollback()
        app.logger.exception("Database error on %s %s", request.method, request.path)
        return _error("Data store error", "dependency_failure", 503)

    @app.errorhandler(NotFound)
    def handle_unknown_route(e):
        return _error(f"Route {request.method} {request.path} not found on this server.", "not_found", 404)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return _error(e.description or e.name, "validation_error" if e.code < 500 else "internal_error", e.code)
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        return _error("Internal server error", "internal_error", 500)


def create_app(test_config=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    _build_engines(app)
    _register_error_handlers(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.public import public_bp
    from .routes.purchase_requests import purchase_requests_bp
    from .routes.products import products_bp
    from .routes.auth import auth_bp
    from .routes.admin import admin_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(public_bp)
    app.register_blueprint(purchase_requests_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ORIGINS") or ())
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config.get("REMINDER_SCHEDULER_ENABLED"):
        _start_reminder_trigger(app)

    return app
