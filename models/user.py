from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from . import db, login_manager, new_id, utcnow


class Role:
    ADMIN = "ADMIN"      # acceso global a todas las sucursales
    GERENTE = "GERENTE"  # acceso completo limitado a su sucursal
    CAJERO = "CAJERO"    # ventas/caja en su sucursal

    ALL = {ADMIN, GERENTE, CAJERO}


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    username = db.Column(db.String(80), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)

    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(20), nullable=False, default=Role.CAJERO)
    branch_id = db.Column(db.String(32), db.ForeignKey("branches.id"), nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "role": self.role,
            "branch_id": self.branch_id,
        }

    def __repr__(self) -> str:
        return f"<User {self.id} {self.username} {self.role}>"


@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(User, user_id)
