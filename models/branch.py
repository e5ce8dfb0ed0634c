from . import db, new_id, utcnow


class Branch(db.Model):
    __tablename__ = "branches"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    name = db.Column(db.String(120), nullable=False, unique=True)
    code = db.Column(db.String(10), nullable=True, unique=True)  # ej: "DIR", "JIN"
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(40), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "is_active": self.is_active,
        }

    def __repr__(self) -> str:
        return f"<Branch {self.id} {self.name}>"
