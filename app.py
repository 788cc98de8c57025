"""MicroSocial API application factory. Settings come from the environment, see config.py."""

import logging
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from auth import TokenIssuer
from config import DEV_JWT_SECRET, Config
from db import Database
from errors import ApiError, InternalError
from media import MediaStore
from routes import IdConverter, auth_bp, main_bp, posts_bp, users_bp
from services import ServiceContext

logger = logging.getLogger("microsocial")


def create_app(config: Optional[Config] = None) -> Flask:
    config = config or Config.from_env()

    # Logging
    logging.basicConfig(level=config.log_level)
    if config.jwt_secret == DEV_JWT_SECRET and not config.testing:
        # In production this MUST be set.
        logger.warning("MICROSOCIAL_JWT_SECRET is not set; using the development secret")

    app = Flask(__name__, static_folder=None)
    app.config["MAX_CONTENT_LENGTH"] = config.max_content_length
    app.config["TESTING"] = config.testing

    # CORS
    CORS(app, resources={r"/*": {"origins": config.cors_origins}})

    database = Database(config.database)
    database.init_schema()
    media = MediaStore(config.upload_folder)
    logger.info("Uploads folder: %s", media.folder)
    tokens = TokenIssuer(config.jwt_secret, config.jwt_expire_seconds, config.jwt_algorithm)
    ServiceContext(config, database, tokens, media).init_app(app)

    # Register blueprints
    app.url_map.converters["id"] = IdConverter
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(posts_bp, url_prefix="/posts")
    app.register_blueprint(users_bp, url_prefix="/users")

    register_error_handlers(app)
    app.after_request(set_security_headers)
    return app


# -----------------------
# Security headers
# -----------------------
def set_security_headers(response):
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
    return response


# -----------------------
# Error handlers
# -----------------------
def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def api_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def http_error(e):
        messages = {
            404: "Not found",
            405: "Method not allowed",
            413: "Uploaded file is too large",
        }
        message = messages.get(e.code, "Bad request" if e.code < 500 else "Internal server error")
        return jsonify({"success": False, "message": message}), e.code

    @app.errorhandler(Exception)
    def unhandled(e):
        logger.exception("Unhandled error")
        error = InternalError()
        return jsonify(error.to_dict()), error.status_code


# -----------------------
# Run server (for dev only). For production use a WSGI server.
# -----------------------
if __name__ == "__main__":
    import os

    config = Config.from_env()
    create_app(config).run(
        host=config.host, port=config.port, debug=os.environ.get("FLASK_DEBUG", "0") == "1"
    )
