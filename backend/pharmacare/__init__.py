# backend/pharmacare/__init__.py
from __future__ import annotations

import logging
import os
from typing import Mapping

from flask import Flask

from .config import Config
from .extensions import db


def _build_session_storage(app: Flask):
    from .session_storage import JsonFileSessionStorage, MemorySessionStorage

    backend = app.config.get("SESSION_STORAGE_BACKEND", "file")
    if backend == "memory":
        return MemorySessionStorage()
    if backend != "file":
        raise ValueError(f"Unknown SESSION_STORAGE_BACKEND: {backend!r}")

    path = app.config.get("SESSION_STORAGE_PATH") or os.path.join(app.instance_path, "session.json")
    return JsonFileSessionStorage(path)


def create_app(config: type | Mapping | None = None) -> Flask:
    """
    Build the process root: data store, seed data, session storage and the
    identity store.

    `config` is a config class (default Config) or a mapping of overrides
    applied on top of Config.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if isinstance(config, Mapping):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)

    # Import models so metadata is complete before create_all
    from . import models  # noqa: F401
    from .services.identity_service import IdentityStore
    from .services.seed_service import seed_demo_data

    identity = IdentityStore(_build_session_storage(app))
    app.extensions["pharmacare.identity"] = identity

    with app.app_context():
        db.create_all()
        if app.config.get("SEED_DEMO_DATA"):
            seed_demo_data()
        identity.restore()

    return app
