from flask import current_app, has_app_context

from config import Config


def setting(name: str):
    """Lee un parámetro de la app activa; fuera de contexto usa los defaults de Config."""
    if has_app_context():
        return current_app.config.get(name, getattr(Config, name))
    return getattr(Config, name)
