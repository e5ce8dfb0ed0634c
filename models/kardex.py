from . import db, iso, new_id, utcnow


class StockMoveType:
    PURCHASE_IN = "PURCHASE_IN"          # entrada por compra
    PURCHASE_VOID = "PURCHASE_VOID"      # anulación de compra
    SALE_OUT = "SALE_OUT"                # salida por venta
    SALE_VOID = "SALE_VOID"              # anulación de venta
    TRANSFER_OUT = "TRANSFER_OUT"        # envío a otra sucursal
    TRANSFER_IN = "TRANSFER_IN"          # recepción de transferencia
    TRANSFER_RETURN = "TRANSFER_RETURN"  # transferencia cancelada en tránsito
    ADJUST = "ADJUST"                    # ajuste manual

    ALL = {
        PURCHASE_IN, PURCHASE_VOID, SALE_OUT, SALE_VOID,
        TRANSFER_OUT, TRANSFER_IN, TRANSFER_RETURN, ADJUST,
    }


class StockMovement(db.Model):
    """
    Kardex: una fila por cada cambio de existencias.
    - qty siempre positivo; direction indica entrada (+1) o salida (-1)
    - reference_id apunta a la venta/compra/transferencia que lo originó
    """
    __tablename__ = "stock_movements"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    product_id = db.Column(db.String(32), db.ForeignKey("products.id"), nullable=False)
    branch_id = db.Column(db.String(32), db.ForeignKey("branches.id"), nullable=False)

    move_type = db.Column(db.String(20), nullable=False)
    direction = db.Column(db.SmallInteger, nullable=False)
    qty = db.Column(db.Integer, nullable=False)
    balance_after = db.Column(db.Integer, nullable=False)

    reference_id = db.Column(db.String(32), nullable=True, index=True)
    user_id = db.Column(db.String(32), nullable=True)
    note = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_stock_movements_product_branch_date", "product_id", "branch_id", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "branch_id": self.branch_id,
            "move_type": self.move_type,
            "qty": self.qty * self.direction,
            "balance_after": self.balance_after,
            "reference_id": self.reference_id,
            "user_id": self.user_id,
            "note": self.note,
            "created_at": iso(self.created_at),
        }

    def __repr__(self):
        return f"<StockMovement {self.move_type} product={self.product_id} qty={self.qty * self.direction}>"
