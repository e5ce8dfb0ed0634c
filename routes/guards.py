from datetime import datetime
from functools import wraps

from flask import abort, jsonify, request
from flask_login import current_user

from models.user import Role


def require_roles(*allowed_roles):
    """Valida que el usuario autenticado tenga uno de los roles permitidos.

    Se usa siempre debajo de ``login_required``.
    """

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if current_user.role not in allowed_roles:
                return jsonify({"error": "FORBIDDEN", "message": "No tienes permisos para esta operación."}), 403
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def branch_scope(requested: str | None = None) -> str:
    """
    Si es ADMIN, permite elegir sucursal (query ?branch_id= o cuerpo).
    GERENTE y CAJERO quedan fijos a su sucursal.
    """
    if current_user.role != Role.ADMIN:
        return current_user.branch_id
    requested = requested or request.args.get("branch_id") or json_body().get("branch_id")
    return requested or current_user.branch_id


def check_branch(*branch_ids: str) -> None:
    """ADMIN opera sobre cualquier sucursal; GERENTE y CAJERO solo sobre registros de la suya."""
    if current_user.role == Role.ADMIN:
        return
    if current_user.branch_id not in branch_ids:
        abort(403)


def parse_date(s: str | None, default: datetime | None = None) -> datetime | None:
    if not s:
        return default
    try:
        return datetime.strptime(s.strip(), "%Y-%m-%d")
    except ValueError:
        return default


def to_int(v, default: int = 0) -> int:
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return default
