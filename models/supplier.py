from . import db, new_id, utcnow


class Supplier(db.Model):
    __tablename__ = "suppliers"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    name = db.Column(db.String(160), nullable=False)
    contact_name = db.Column(db.String(120), nullable=True)
    phone = db.Column(db.String(40), nullable=True)
    tax_id = db.Column(db.String(40), nullable=True)

    # Términos de crédito. La deuda con el proveedor solo vive en las CPP abiertas.
    credit_days = db.Column(db.Integer, nullable=False, default=0)
    credit_limit = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "credit_days": self.credit_days,
            "credit_limit": self.credit_limit,
        }

    def __repr__(self):
        return f"<Supplier {self.id} {self.name}>"
