from . import db, new_id, utcnow


class CustomerType:
    RETAIL = "RETAIL"        # detalle
    WHOLESALE = "WHOLESALE"  # mayorista / sub-distribuidor

    ALL = {RETAIL, WHOLESALE}


class Customer(db.Model):
    __tablename__ = "customers"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    name = db.Column(db.String(160), nullable=False)
    phone = db.Column(db.String(40), nullable=True)
    email = db.Column(db.String(180), nullable=True)
    tax_id = db.Column(db.String(40), nullable=True)  # RUC

    customer_type = db.Column(db.String(20), nullable=False, default=CustomerType.RETAIL)

    # Línea de crédito (centavos). current_debt refleja la suma de saldos CXC abiertos:
    # solo lo mueven ventas a crédito, abonos y anulaciones.
    credit_limit = db.Column(db.Integer, nullable=False, default=0)
    current_debt = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_customers_name", "name"),
    )

    @property
    def available_credit(self) -> int:
        return self.credit_limit - self.current_debt

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "customer_type": self.customer_type,
            "credit_limit": self.credit_limit,
            "current_debt": self.current_debt,
            "available_credit": self.available_credit,
        }

    def __repr__(self):
        return f"<Customer {self.id} {self.name} debt={self.current_debt}>"
