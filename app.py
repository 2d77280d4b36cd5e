import os
import logging
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify, request
from flask_login import LoginManager, UserMixin
from werkzeug.exceptions import HTTPException

from database import db
from engine.errors import ScoringError
from engine.match_service import MatchService
from engine.settings import ScoringSettings
from routes.match_routes import register_match_routes
from utils.helpers import PROJECT_ROOT, load_config

USER_HEADER = "X-User-Id"


class User(UserMixin):
    def __init__(self, user_id):
        self.id = user_id


def _configure_logging(app, config):
    log_config = config.get("logging", {}) or {}
    log_path = log_config.get("file") or "logs/execution.log"
    if not os.path.isabs(log_path):
        log_path = os.path.join(PROJECT_ROOT, log_path)
    os.makedirs(os.path.dirname(log_path), exist_ok=True)
    level = getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO)

    # Clear existing handlers to avoid duplicates
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)

    # File handler for persistent logging
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=int(log_config.get("max_bytes", 10 * 1024 * 1024)),
        backupCount=int(log_config.get("backup_count", 5)),
        encoding='utf-8'
    )
    file_handler.setLevel(level)

    # Console handler for terminal visibility
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    file_handler.setFormatter(formatter)
    console_handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=[file_handler, console_handler])

    app.logger = logging.getLogger("CricRoom")
    app.logger.setLevel(level)


# ────── App Factory ──────
def create_app():
    # --- Flask setup ---
    app = Flask(__name__)
    config = load_config()

    # --- Secret key setup ---
    secret = (config.get("app", {}) or {}).get("secret_key")
    if not secret or not isinstance(secret, str):
        secret = os.getenv("FLASK_SECRET_KEY")
        if not secret:
            secret = os.urandom(24).hex()
            print("[WARN] Using random Flask SECRET_KEY; sessions won't persist across restarts")
    app.config["SECRET_KEY"] = secret

    # --- Database ---
    db_uri = os.getenv("CRICROOM_DB_URI") or (config.get("database", {}) or {}).get("uri")
    if not db_uri:
        db_uri = "sqlite:///" + os.path.join(PROJECT_ROOT, "data", "cricroom.db")
    if db_uri.startswith("sqlite:///") and not db_uri.startswith("sqlite:////"):
        relative = db_uri[len("sqlite:///"):]
        if relative and relative != ":memory:":
            path = os.path.join(PROJECT_ROOT, relative)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            db_uri = "sqlite:///" + path
    app.config["SQLALCHEMY_DATABASE_URI"] = db_uri
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    db.init_app(app)

    # --- Logging setup (logs to file + terminal) ---
    _configure_logging(app, config)

    # --- Flask-Login setup ---
    # Identity is established upstream; the gateway forwards the user id.
    login_manager = LoginManager(app)

    @login_manager.request_loader
    def load_user_from_request(req):
        user_id = (req.headers.get(USER_HEADER) or "").strip()
        if user_id:
            return User(user_id)
        return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Authentication required", "kind": "unauthorized"}), 401

    # --- Request logging ---
    @app.before_request
    def log_request():
        app.logger.info(f"{request.remote_addr} {request.method} {request.path}")

    # --- Error handling ---
    @app.errorhandler(ScoringError)
    def handle_scoring_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc):
        return jsonify({"error": exc.description, "kind": exc.name}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc):
        app.logger.error(f"Unhandled error on {request.method} {request.path}: {exc}", exc_info=True)
        return jsonify({"error": "An internal error occurred"}), 500

    # --- Scoring engine ---
    match_service = MatchService(settings=ScoringSettings.from_config(config))
    app.extensions["match_service"] = match_service

    register_match_routes(app, match_service=match_service)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    with app.app_context():
        db.create_all()

    return app


if __name__ == "__main__":
    create_app().run(host="127.0.0.1", port=5000)
