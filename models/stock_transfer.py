from . import db, iso, new_id, utcnow


class TransferType:
    SEND = "SEND"        # el origen decide enviar
    REQUEST = "REQUEST"  # se solicita y requiere aprobación

    ALL = {SEND, REQUEST}


class TransferStatus:
    REQUESTED = "REQUESTED"
    PENDING = "PENDING"
    IN_TRANSIT = "IN_TRANSIT"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    TERMINAL = {COMPLETED, CANCELLED}


# Transiciones permitidas: estado actual -> estados destino
TRANSITIONS = {
    TransferStatus.REQUESTED: {TransferStatus.PENDING, TransferStatus.CANCELLED},
    TransferStatus.PENDING: {TransferStatus.IN_TRANSIT, TransferStatus.CANCELLED},
    TransferStatus.IN_TRANSIT: {TransferStatus.COMPLETED, TransferStatus.CANCELLED},
}

INITIAL_STATUS = {
    TransferType.REQUEST: TransferStatus.REQUESTED,
    TransferType.SEND: TransferStatus.PENDING,
}


class StockTransfer(db.Model):
    __tablename__ = "stock_transfers"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    from_branch_id = db.Column(db.String(32), db.ForeignKey("branches.id"), nullable=False, index=True)
    to_branch_id = db.Column(db.String(32), db.ForeignKey("branches.id"), nullable=False, index=True)

    transfer_type = db.Column(db.String(10), nullable=False)
    status = db.Column(db.String(20), nullable=False, index=True)

    notes = db.Column(db.String(255), nullable=True)

    created_by = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    approved_by = db.Column(db.String(32), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    shipped_by = db.Column(db.String(32), nullable=True)
    shipped_at = db.Column(db.DateTime, nullable=True)
    completed_by = db.Column(db.String(32), nullable=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    cancelled_by = db.Column(db.String(32), nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    items = db.relationship(
        "StockTransferItem",
        backref="transfer",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="StockTransferItem.position",
    )

    @classmethod
    def new(cls, *, transfer_type: str, from_branch_id: str, to_branch_id: str, **fields):
        """Crea la transferencia con el estado inicial que corresponde a su tipo."""
        if transfer_type not in INITIAL_STATUS:
            raise ValueError(f"Tipo de transferencia inválido: {transfer_type}")
        return cls(
            id=new_id(),
            transfer_type=transfer_type,
            status=INITIAL_STATUS[transfer_type],
            from_branch_id=from_branch_id,
            to_branch_id=to_branch_id,
            **fields,
        )

    def can_move_to(self, target: str) -> bool:
        return target in TRANSITIONS.get(self.status, set())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from_branch_id": self.from_branch_id,
            "to_branch_id": self.to_branch_id,
            "type": self.transfer_type,
            "status": self.status,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
            "approved_by": self.approved_by,
            "approved_at": iso(self.approved_at),
            "shipped_by": self.shipped_by,
            "shipped_at": iso(self.shipped_at),
            "completed_by": self.completed_by,
            "completed_at": iso(self.completed_at),
            "cancelled_by": self.cancelled_by,
            "cancelled_at": iso(self.cancelled_at),
            "items": [it.to_dict() for it in self.items],
        }

    def __repr__(self):
        return f"<StockTransfer {self.id} {self.from_branch_id}->{self.to_branch_id} {self.status}>"


class StockTransferItem(db.Model):
    __tablename__ = "stock_transfer_items"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    transfer_id = db.Column(db.String(32), db.ForeignKey("stock_transfers.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)

    product_id = db.Column(db.String(32), db.ForeignKey("products.id"), nullable=False)
    product_name = db.Column(db.String(160), nullable=True)

    unit_id = db.Column(db.String(32), db.ForeignKey("unit_conversions.id"), nullable=True)
    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    base_quantity = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "unit_id": self.unit_id,
            "quantity": str(self.quantity),
            "base_quantity": self.base_quantity,
        }
