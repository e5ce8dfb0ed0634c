from . import db, iso, new_id, utcnow

# Tope de una columna Integer en el servidor
MAX_QUANTITY = 2_147_483_647


class Stock(db.Model):
    """
    Existencias por (producto, sucursal), siempre en unidad base.
    La fila se crea la primera vez que se referencia el par.
    version: control optimista de concurrencia (SQLAlchemy version_id_col).
    """
    __tablename__ = "stocks"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    product_id = db.Column(db.String(32), db.ForeignKey("products.id"), nullable=False)
    branch_id = db.Column(db.String(32), db.ForeignKey("branches.id"), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)
    max_stock = db.Column(db.Integer, nullable=False, default=0)

    version = db.Column(db.Integer, nullable=False)

    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("product_id", "branch_id", name="uq_stock_product_branch"),
        db.Index("ix_stocks_branch", "branch_id"),
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "branch_id": self.branch_id,
            "quantity": self.quantity,
            "min_stock": self.min_stock,
            "max_stock": self.max_stock,
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Stock product={self.product_id} branch={self.branch_id} qty={self.quantity}>"
