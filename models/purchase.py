from . import db, iso, new_id, utcnow


class PurchaseType:
    CASH = "CASH"
    CREDIT = "CREDIT"

    ALL = {CASH, CREDIT}


class PurchaseStatus:
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Purchase(db.Model):
    __tablename__ = "purchases"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    branch_id = db.Column(db.String(32), db.ForeignKey("branches.id"), nullable=False, index=True)
    supplier_id = db.Column(db.String(32), db.ForeignKey("suppliers.id"), nullable=False, index=True)
    supplier = db.relationship("Supplier", lazy="joined")

    purchase_type = db.Column(db.String(10), nullable=False)
    payment_method = db.Column(db.String(20), nullable=True)

    subtotal = db.Column(db.Integer, nullable=False, default=0)
    tax = db.Column(db.Integer, nullable=False, default=0)
    discount = db.Column(db.Integer, nullable=False, default=0)
    total = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(10), nullable=False, default=PurchaseStatus.COMPLETED, index=True)

    invoice_number = db.Column(db.String(60), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    cancelled_by = db.Column(db.String(32), nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    items = db.relationship(
        "PurchaseItem",
        backref="purchase",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="PurchaseItem.position",
    )

    __table_args__ = (
        db.Index("ix_purchases_branch_created", "branch_id", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "supplier_id": self.supplier_id,
            "type": self.purchase_type,
            "payment_method": self.payment_method,
            "subtotal": self.subtotal,
            "tax": self.tax,
            "discount": self.discount,
            "total": self.total,
            "status": self.status,
            "invoice_number": self.invoice_number,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
            "cancelled_by": self.cancelled_by,
            "cancelled_at": iso(self.cancelled_at),
            "items": [it.to_dict() for it in self.items],
        }

    def __repr__(self):
        return f"<Purchase {self.id} branch={self.branch_id} total={self.total} {self.status}>"


class PurchaseItem(db.Model):
    __tablename__ = "purchase_items"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    purchase_id = db.Column(db.String(32), db.ForeignKey("purchases.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.String(32), db.ForeignKey("products.id"), nullable=False, index=True)
    product_name = db.Column(db.String(160), nullable=True)

    unit_id = db.Column(db.String(32), db.ForeignKey("unit_conversions.id"), nullable=True)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    base_quantity = db.Column(db.Integer, nullable=False)

    unit_cost = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "unit_id": self.unit_id,
            "quantity": str(self.quantity),
            "base_quantity": self.base_quantity,
            "unit_cost": self.unit_cost,
            "subtotal": self.subtotal,
        }
