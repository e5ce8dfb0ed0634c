from models import db, iso, new_id, utcnow


class CashMoveType:
    INCOME = "INCOME"    # Ingreso
    EXPENSE = "EXPENSE"  # Egreso

    ALL = {INCOME, EXPENSE}


class CashCategory:
    SALE = "SALE"
    PURCHASE = "PURCHASE"
    CREDIT_PAYMENT = "CREDIT_PAYMENT"
    EXPENSE = "EXPENSE"        # gasto operativo
    TRANSFER = "TRANSFER"      # entre cajas
    ADJUSTMENT = "ADJUSTMENT"  # contrapartidas de anulaciones

    ALL = {SALE, PURCHASE, CREDIT_PAYMENT, EXPENSE, TRANSFER, ADJUSTMENT}


class PaymentMethod:
    CASH = "CASH"
    TRANSFER = "TRANSFER"
    CHECK = "CHECK"

    ALL = {CASH, TRANSFER, CHECK}


class CashMovement(db.Model):
    """Libro de caja por sucursal. Solo se agregan filas, nunca se editan ni borran."""

    __tablename__ = "cash_movements"

    id = db.Column(db.String(32), primary_key=True, default=new_id)

    branch_id = db.Column(db.String(32), db.ForeignKey("branches.id"), nullable=False, index=True)

    move_type = db.Column(db.String(10), nullable=False, index=True)
    category = db.Column(db.String(20), nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)  # centavos, siempre positivo

    # Referencias a la operación origen
    sale_id = db.Column(db.String(32), db.ForeignKey("sales.id"), nullable=True, index=True)
    purchase_id = db.Column(db.String(32), db.ForeignKey("purchases.id"), nullable=True, index=True)
    credit_account_id = db.Column(db.String(32), nullable=True, index=True)
    reverses_id = db.Column(db.String(32), db.ForeignKey("cash_movements.id"), nullable=True)

    payment_method = db.Column(db.String(20), nullable=False, default=PaymentMethod.CASH)
    reference = db.Column(db.String(80), nullable=True)

    description = db.Column(db.String(255), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    created_by = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    @property
    def signed_amount(self) -> int:
        return self.amount if self.move_type == CashMoveType.INCOME else -self.amount

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "type": self.move_type,
            "category": self.category,
            "amount": self.amount,
            "sale_id": self.sale_id,
            "purchase_id": self.purchase_id,
            "credit_account_id": self.credit_account_id,
            "reverses_id": self.reverses_id,
            "payment_method": self.payment_method,
            "reference": self.reference,
            "description": self.description,
            "created_by": self.created_by,
            "created_at": iso(self.created_at),
        }
