from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Engine selection comes from the database config file unless DB_ENGINE is set.
    # SQLALCHEMY_DATABASE_URI is derived by the engine adapter at startup;
    # set it explicitly only to bypass the adapter (tests).
    DB_ENGINE = os.environ.get("DB_ENGINE")
    DB_CONFIG_PATH = os.environ.get("DB_CONFIG_PATH")  # default: <instance>/db.config.json
    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Connection bootstrap: fixed number of attempts with fixed backoff
    DB_CONNECT_ATTEMPTS = int(os.environ.get("DB_CONNECT_ATTEMPTS", "3"))
    DB_CONNECT_BACKOFF_SECONDS = float(os.environ.get("DB_CONNECT_BACKOFF_SECONDS", "1.0"))

    # Default admin bootstrap
    BOOTSTRAP_DEFAULT_ADMIN = _env_bool("BOOTSTRAP_DEFAULT_ADMIN", True)
    DEFAULT_ADMIN_DELAY_SECONDS = float(os.environ.get("DEFAULT_ADMIN_DELAY_SECONDS", "2.0"))

    # Sessions: "database" keeps session rows in session_tokens, "memory" keeps them in-process
    SESSION_STORE = os.environ.get("SESSION_STORE", "database")
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "hub_session")
    AUTH_COOKIE_SECURE = _env_bool("AUTH_COOKIE_SECURE", False)

    # bcrypt-pbkdf rounds for password hashing
    PASSWORD_KDF_ROUNDS = int(os.environ.get("PASSWORD_KDF_ROUNDS", "64"))

    # Uploaded subsidiary logos
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.abspath("uploads"))
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Browser origins allowed to call the API with credentials
    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if o.strip()
    ]
