from sqlalchemy.ext.hybrid import hybrid_property

from . import db, iso, new_id, utcnow


class CreditAccountType:
    CPP = "CPP"  # cuenta por pagar (proveedor)
    CXC = "CXC"  # cuenta por cobrar (cliente)

    ALL = {CPP, CXC}


class CreditAccountStatus:
    PENDIENTE = "PENDIENTE"
    PAGADO_PARCIAL = "PAGADO_PARCIAL"
    PAGADO = "PAGADO"

    ALL = {PENDIENTE, PAGADO_PARCIAL, PAGADO}


def credit_status(paid_amount: int, total_amount: int) -> str:
    """Estado de la cuenta en función únicamente de lo pagado vs el total."""
    if paid_amount >= total_amount:
        return CreditAccountStatus.PAGADO
    if paid_amount > 0:
        return CreditAccountStatus.PAGADO_PARCIAL
    return CreditAccountStatus.PENDIENTE


class CreditAccount(db.Model):
    """
    Cuenta de crédito ligada a su operación origen:
      - CPP: compra + proveedor
      - CXC: venta + cliente
    El saldo no se guarda: siempre es total_amount - paid_amount.
    """
    __tablename__ = "credit_accounts"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    account_type = db.Column(db.String(3), nullable=False, index=True)
    branch_id = db.Column(db.String(32), db.ForeignKey("branches.id"), nullable=False, index=True)

    supplier_id = db.Column(db.String(32), db.ForeignKey("suppliers.id"), nullable=True, index=True)
    customer_id = db.Column(db.String(32), db.ForeignKey("customers.id"), nullable=True, index=True)

    purchase_id = db.Column(db.String(32), db.ForeignKey("purchases.id"), nullable=True, unique=True)
    sale_id = db.Column(db.String(32), db.ForeignKey("sales.id"), nullable=True, unique=True)

    # Montos en centavos
    total_amount = db.Column(db.Integer, nullable=False)
    paid_amount = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default=CreditAccountStatus.PENDIENTE, index=True)

    invoice_number = db.Column(db.String(60), nullable=True)
    due_date = db.Column(db.DateTime, nullable=True)

    version = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    payments = db.relationship(
        "CreditPayment",
        backref="account",
        lazy="selectin",
        order_by="CreditPayment.created_at",
    )

    __mapper_args__ = {"version_id_col": version}

    @hybrid_property
    def balance_amount(self):
        return self.total_amount - self.paid_amount

    def register_paid(self, amount: int) -> None:
        self.paid_amount = self.paid_amount + amount
        self.status = credit_status(self.paid_amount, self.total_amount)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.account_type,
            "branch_id": self.branch_id,
            "supplier_id": self.supplier_id,
            "customer_id": self.customer_id,
            "purchase_id": self.purchase_id,
            "sale_id": self.sale_id,
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "balance_amount": self.balance_amount,
            "status": self.status,
            "invoice_number": self.invoice_number,
            "due_date": iso(self.due_date),
            "created_at": iso(self.created_at),
        }

    def __repr__(self):
        return f"<CreditAccount {self.account_type} {self.id} paid={self.paid_amount}/{self.total_amount}>"


class CreditPayment(db.Model):
    """Abono a una cuenta de crédito (solo se agregan)."""

    __tablename__ = "credit_payments"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    credit_account_id = db.Column(
        db.String(32), db.ForeignKey("credit_accounts.id"), nullable=False, index=True
    )

    amount = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(20), nullable=False)
    reference = db.Column(db.String(80), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "credit_account_id": self.credit_account_id,
            "amount": self.amount,
            "payment_method": self.payment_method,
            "reference": self.reference,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
        }
