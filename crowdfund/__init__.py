# crowdfund/__init__.py
import logging
import os
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_jwt_extended import JWTManager
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from crowdfund.routes import (
    admin_bp,
    auth_bp,
    campaigns,
    contact_bp,
    core,
    dashboard,
    donations_bp,
    user,
)
from crowdfund.utils.errors import ApiError

load_dotenv(dotenv_path=".env")

log = logging.getLogger(__name__)


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _field_errors(exc: ValidationError):
    errors = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid")
        errors.append(f"{field}: {msg}" if field else msg)
    return errors


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def _api_error(e: ApiError):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(ValidationError)
    def _validation_error(e: ValidationError):
        return jsonify({"message": "Validation failed", "errors": _field_errors(e)}), 400

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({"message": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def _server_error(e: Exception):
        log.exception("[server] unhandled error")
        body = {"message": "Server error"}
        if app.debug or os.getenv("APP_ENV") == "development":
            body["error"] = str(e)
        return jsonify(body), 500


def register_jwt_callbacks(jwt: JWTManager) -> None:
    @jwt.unauthorized_loader
    def _missing(reason):
        return jsonify({"message": "Authentication required"}), 401

    @jwt.invalid_token_loader
    def _invalid(reason):
        return jsonify({"message": "Invalid token"}), 401

    @jwt.expired_token_loader
    def _expired(header, payload):
        return jsonify({"message": "Token expired"}), 401


def create_app(overrides=None):
    configure_logging()
    app = Flask(__name__)
    app.url_map.strict_slashes = False

    # JWT
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET", "dev-secret")
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_NAME"] = "Authorization"
    app.config["JWT_HEADER_TYPE"] = "Bearer"
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        hours=int(os.getenv("JWT_ACCESS_HOURS", "24"))
    )
    if overrides:
        app.config.update(overrides)
    register_jwt_callbacks(JWTManager(app))
    register_error_handlers(app)

    app.register_blueprint(core)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(campaigns, url_prefix="/api/campaigns")
    app.register_blueprint(donations_bp, url_prefix="/api/donations")
    app.register_blueprint(user, url_prefix="/api/users")
    app.register_blueprint(dashboard, url_prefix="/api/dashboard")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(contact_bp, url_prefix="/api/contact")

    log.info("[server] %d routes registered", len(list(app.url_map.iter_rules())))
    return app
