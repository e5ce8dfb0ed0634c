import os

basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev_secret_key_change_me")

    # SQLite local por defecto; DATABASE_URL para servidor
    DB_PATH = os.environ.get("DB_PATH", os.path.join(basedir, "ledger.db"))
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", f"sqlite:///{DB_PATH}")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_DIR = os.environ.get("LOG_DIR", os.path.join(basedir, "logs"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_FILE = True

    # Reglas de negocio
    CXC_DEFAULT_DUE_DAYS = int(os.environ.get("CXC_DEFAULT_DUE_DAYS", "30"))
    STOCK_DEFAULT_MIN = int(os.environ.get("STOCK_DEFAULT_MIN", "10"))
    STOCK_DEFAULT_MAX = int(os.environ.get("STOCK_DEFAULT_MAX", "1000"))
    PURCHASE_EDIT_WINDOW_DAYS = int(os.environ.get("PURCHASE_EDIT_WINDOW_DAYS", "7"))

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_TO_FILE = False
    SECRET_KEY = "test"
