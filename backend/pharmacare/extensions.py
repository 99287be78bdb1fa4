# Overview: Flask extension instances for the in-memory data store.

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
