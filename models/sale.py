from . import db, iso, new_id, utcnow


class SaleType:
    CASH = "CASH"
    CREDIT = "CREDIT"

    ALL = {CASH, CREDIT}


class SaleStatus:
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


class Sale(db.Model):
    __tablename__ = "sales"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    branch_id = db.Column(db.String(32), db.ForeignKey("branches.id"), nullable=False, index=True)

    # Cliente (obligatorio solo en ventas a crédito)
    customer_id = db.Column(db.String(32), db.ForeignKey("customers.id"), nullable=True, index=True)
    customer = db.relationship("Customer", lazy="joined")

    sale_type = db.Column(db.String(10), nullable=False)
    payment_method = db.Column(db.String(20), nullable=True)

    # Totales en centavos
    subtotal = db.Column(db.Integer, nullable=False, default=0)
    tax = db.Column(db.Integer, nullable=False, default=0)
    discount = db.Column(db.Integer, nullable=False, default=0)
    total = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(10), nullable=False, default=SaleStatus.ACTIVE, index=True)

    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    cancelled_by = db.Column(db.String(32), nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="SaleItem.position",
    )

    __table_args__ = (
        db.Index("ix_sales_branch_created", "branch_id", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "customer_id": self.customer_id,
            "type": self.sale_type,
            "payment_method": self.payment_method,
            "subtotal": self.subtotal,
            "tax": self.tax,
            "discount": self.discount,
            "total": self.total,
            "status": self.status,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
            "cancelled_by": self.cancelled_by,
            "cancelled_at": iso(self.cancelled_at),
            "items": [it.to_dict() for it in self.items],
        }

    def __repr__(self):
        return f"<Sale {self.id} branch={self.branch_id} total={self.total} {self.status}>"


class SaleItem(db.Model):
    __tablename__ = "sale_items"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    sale_id = db.Column(db.String(32), db.ForeignKey("sales.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.String(32), db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(160), nullable=True)

    # Cantidad en la unidad elegida y su equivalente en unidad base,
    # "fotografiado" al vender: la anulación usa base_quantity tal cual.
    unit_id = db.Column(db.String(32), db.ForeignKey("unit_conversions.id"), nullable=True)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    base_quantity = db.Column(db.Integer, nullable=False)

    unit_price = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "unit_id": self.unit_id,
            "quantity": str(self.quantity),
            "base_quantity": self.base_quantity,
            "unit_price": self.unit_price,
            "subtotal": self.subtotal,
        }

    def __repr__(self):
        return f"<SaleItem sale={self.sale_id} product={self.product_id} base_qty={self.base_quantity}>"
