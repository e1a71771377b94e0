# backend/backoffice/config.py
from __future__ import annotations
import os
from datetime import timedelta


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/backoffice.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location (e.g. postgresql://...)
        "sqlite:///backoffice.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Stateless bearer tokens; no server-side session or revocation list
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET", SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.environ.get("JWT_EXPIRES_IN", "3600")))
    JWT_TOKEN_LOCATION = ["headers"]

    # bcrypt cost factor is fixed per deployment
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))
    PASSWORD_MIN_LENGTH = 6

    DEFAULT_PAGE_LIMIT = 20
    MAX_PAGE_LIMIT = 1000

    # Cloudflare Images (hero images, avatars, product media)
    CLOUDFLARE_ACCOUNT_ID = os.environ.get("CLOUDFLARE_ACCOUNT_ID")
    CLOUDFLARE_API_TOKEN = os.environ.get("CLOUDFLARE_API_TOKEN")
    CLOUDFLARE_IMAGES_BASE_URL = os.environ.get("CLOUDFLARE_IMAGES_BASE_URL")
    MEDIA_MAX_UPLOAD_BYTES = 2 * 1024 * 1024
    # Whole-request cap: the media limit plus multipart framing. Werkzeug answers 413 past it
    MAX_CONTENT_LENGTH = MEDIA_MAX_UPLOAD_BYTES + 64 * 1024
    MEDIA_REQUEST_TIMEOUT = float(os.environ.get("MEDIA_REQUEST_TIMEOUT", "30"))

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    }

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
