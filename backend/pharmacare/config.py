# backend/pharmacare/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Domain data lives in memory and is re-seeded on every start
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite://",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Where the current login is kept between restarts.
    # None -> <instance_path>/session.json
    SESSION_STORAGE_PATH = os.environ.get("SESSION_STORAGE_PATH")
    SESSION_STORAGE_BACKEND = os.environ.get("SESSION_STORAGE_BACKEND", "file")  # file | memory

    SEED_DEMO_DATA = _env_flag("SEED_DEMO_DATA", True)

    # Checkout takes sold quantities out of inventory stock
    POS_DECREMENT_STOCK = _env_flag("POS_DECREMENT_STOCK", True)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SESSION_STORAGE_BACKEND = "memory"
    SEED_DEMO_DATA = False
    POS_DECREMENT_STOCK = True
