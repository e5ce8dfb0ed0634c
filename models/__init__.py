import uuid
from datetime import datetime, timezone

from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()
login_manager = LoginManager()


def new_id() -> str:
    """Identificador opaco (string) para todas las entidades."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    # Naive UTC: SQLite no guarda zona horaria
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso(value):
    return value.isoformat() if value else None
