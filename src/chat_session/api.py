"""
Flask HTTP surface for the Chat Session Service.

Routes translate between JSON and ChatSessionApp calls and map the error
taxonomy onto status codes: 401 unauthenticated, 400 bad input,
500 completion or storage failure.
"""
import logging
import re
from typing import Iterable, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .app import ChatSessionApp
from .exceptions import (
    AccountExistsError,
    InvalidCredentialsError,
    OracleError,
    PersistenceError,
    UnauthenticatedError,
    UserNotFoundError,
)
from .security import ValidationError, extract_bearer_token

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-Requested-With"]


class OriginPolicy:
    """
    Cross-origin allow-list: exact origins plus one trusted hostname suffix.

    Requests without an Origin header (same-origin, curl, server-to-server)
    are always allowed.
    """

    def __init__(self, allowed_origins: Iterable[str], trusted_suffix: Optional[str] = None):
        self.allowed_origins = [origin.rstrip("/").lower() for origin in allowed_origins]
        self.trusted_suffix = trusted_suffix.lower() if trusted_suffix else None

    def is_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return True
        origin = origin.rstrip("/").lower()
        if origin in self.allowed_origins:
            return True
        return bool(self.trusted_suffix) and origin.endswith(self.trusted_suffix)

    def cors_origins(self) -> list:
        """Origins in the form flask_cors accepts (strings and compiled regexes)."""
        origins = list(self.allowed_origins)
        if self.trusted_suffix:
            origins.append(re.compile(".*" + re.escape(self.trusted_suffix) + "$", re.IGNORECASE))
        return origins


def _json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _credential() -> Optional[str]:
    return extract_bearer_token(request.headers.get("Authorization"))


def create_app(chat_app: ChatSessionApp) -> Flask:
    """
    Build the Flask application around an initialized ChatSessionApp.

    :param chat_app: Composition root; initialize() is called if needed
    :return: Flask app
    """
    chat_app.initialize()
    config = chat_app.config

    app = Flask(__name__)
    app.extensions["chat_session"] = chat_app

    policy = OriginPolicy(config.allowed_origins, config.trusted_origin_suffix)
    CORS(
        app,
        origins=policy.cors_origins(),
        methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        supports_credentials=True,
    )

    limiter = Limiter(
        key_func=get_remote_address,
        app=app,
        default_limits=[limit.strip() for limit in config.rate_limits.split(";") if limit.strip()],
        storage_uri="memory://",
        enabled=config.enable_rate_limiting,
    )
    # Route limits only hold a weak reference to the limiter; the app keeps it alive.
    app.extensions["chat_session_limiter"] = limiter

    @app.before_request
    def reject_untrusted_origin():
        origin = request.headers.get("Origin")
        if not policy.is_allowed(origin):
            logger.warning(f"Rejected request from origin {origin}")
            return jsonify({"error": "Not allowed by CORS"}), 403
        return None

    @app.route("/")
    @limiter.exempt
    def index():
        return "Server is running successfully!"

    @app.route("/health")
    @limiter.exempt
    def health():
        return jsonify({"status": "ok"})

    # ----------------------------
    # Identity provider routes
    # ----------------------------
    @app.route("/signup", methods=["POST"])
    def signup():
        data = _json_body()
        try:
            chat_app.signup(data.get("username"), data.get("email"), data.get("password"))
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except AccountExistsError:
            return jsonify({"error": "User already exists"}), 409
        except Exception as e:
            logger.error(f"Signup error: {str(e)}", exc_info=True)
            return jsonify({"error": "Error creating user"}), 500
        return jsonify({"message": "User created"}), 201

    @app.route("/login", methods=["POST"])
    @limiter.limit(config.login_rate_limit)
    def login():
        data = _json_body()
        try:
            result = chat_app.login(data.get("email"), data.get("password"))
        except UserNotFoundError:
            return jsonify({"error": "User not found"}), 400
        except InvalidCredentialsError:
            return jsonify({"error": "Invalid credentials"}), 400
        except Exception as e:
            logger.error(f"Login error: {str(e)}", exc_info=True)
            return jsonify({"error": "Login failed"}), 500
        return jsonify({"token": result.token, "username": result.username})

    # ----------------------------
    # Chat routes
    # ----------------------------
    @app.route("/chat/history", methods=["GET"])
    def chat_history():
        try:
            history = chat_app.get_history(_credential())
        except UnauthenticatedError:
            return jsonify({"error": "Unauthorized"}), 401
        except PersistenceError as e:
            logger.error(f"History fetch error: {str(e)}")
            return jsonify({"error": "Failed to fetch history"}), 500
        return jsonify(history.to_wire())

    @app.route("/chat", methods=["POST"])
    @limiter.limit(config.chat_rate_limit)
    def chat():
        data = _json_body()
        try:
            response = chat_app.chat(_credential(), data.get("message"))
        except UnauthenticatedError:
            return jsonify({"error": "Unauthorized"}), 401
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        except OracleError as e:
            logger.error(f"Chat endpoint oracle error: {str(e)}")
            return jsonify({"error": "Completion backend error"}), 500
        except PersistenceError as e:
            logger.error(f"Chat endpoint persistence error: {str(e)}")
            return jsonify({"error": "Failed to save conversation"}), 500
        return jsonify({"text": response.text})

    return app
