"""Cuentas de crédito (CXC/CPP), abonos y contador de deuda del cliente."""
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from models import utcnow
from models.cash_movement import CashCategory, CashMoveType, PaymentMethod
from models.credit_account import (
    CreditAccount,
    CreditAccountStatus,
    CreditAccountType,
    CreditPayment,
    credit_status,
)
from models.customer import Customer
from services import cash
from services.errors import (
    AlreadySettled,
    CreditAccountHasPayments,
    InconsistentLedger,
    InvalidRequest,
    NotFound,
    OverpaymentNotAllowed,
)
from services.unit_of_work import LedgerTransaction

logger = logging.getLogger(__name__)


# -------------------------
# Contador de deuda del cliente
# -------------------------
def raise_customer_debt(db: Session, customer: Customer, amount: int) -> None:
    customer.current_debt = customer.current_debt + amount


def lower_customer_debt(db: Session, customer: Customer, amount: int) -> None:
    new_debt = customer.current_debt - amount
    if new_debt < 0:
        raise InconsistentLedger(
            f"La deuda del cliente {customer.id} quedaría negativa ({new_debt})",
            customer_id=customer.id,
            current_debt=customer.current_debt,
            amount=amount,
        )
    customer.current_debt = new_debt


def _lock_customer(db: Session, customer_id: str) -> Optional[Customer]:
    return db.query(Customer).filter(Customer.id == customer_id).with_for_update().first()


# -------------------------
# Cuentas
# -------------------------
def open_account(
    db: Session,
    *,
    account_type: str,
    branch_id: str,
    total_amount: int,
    due_days: int,
    customer_id: Optional[str] = None,
    supplier_id: Optional[str] = None,
    sale_id: Optional[str] = None,
    purchase_id: Optional[str] = None,
    invoice_number: Optional[str] = None,
) -> CreditAccount:
    if account_type not in CreditAccountType.ALL:
        raise ValueError(f"Tipo de cuenta inválido: {account_type}")
    account = CreditAccount(
        account_type=account_type,
        branch_id=branch_id,
        customer_id=customer_id,
        supplier_id=supplier_id,
        sale_id=sale_id,
        purchase_id=purchase_id,
        total_amount=total_amount,
        paid_amount=0,
        status=credit_status(0, total_amount),
        invoice_number=invoice_number,
        due_date=utcnow() + timedelta(days=due_days),
    )
    db.add(account)
    return account


def find_by_origin(db: Session, *, sale_id: Optional[str] = None,
                   purchase_id: Optional[str] = None, lock: bool = False) -> Optional[CreditAccount]:
    if not sale_id and not purchase_id:
        return None
    q = db.query(CreditAccount)
    if sale_id:
        q = q.filter(CreditAccount.sale_id == sale_id)
    if purchase_id:
        q = q.filter(CreditAccount.purchase_id == purchase_id)
    if lock:
        q = q.with_for_update()
    return q.first()


def ensure_voidable(account: Optional[CreditAccount]) -> None:
    """Una cuenta con abonos no se anula: habría que devolver dinero ya recibido/pagado."""
    if account is not None and account.paid_amount > 0:
        raise CreditAccountHasPayments(
            f"No se puede anular: la cuenta {account.account_type} ya tiene abonos "
            f"(pagado C$ {account.paid_amount / 100:.2f})",
            credit_account_id=account.id,
            paid_amount=account.paid_amount,
        )


def void_account(db: Session, account: CreditAccount) -> None:
    """
    Elimina la cuenta de una venta/compra anulada. Para CXC baja la deuda del cliente
    por el total original (sin abonos, total == saldo).
    """
    ensure_voidable(account)
    if account.account_type == CreditAccountType.CXC and account.customer_id:
        customer = _lock_customer(db, account.customer_id)
        if customer is None:
            raise InconsistentLedger(
                f"CXC {account.id} apunta a un cliente inexistente",
                credit_account_id=account.id,
                customer_id=account.customer_id,
            )
        lower_customer_debt(db, customer, account.total_amount)
    db.delete(account)


# -------------------------
# Abonos
# -------------------------
def apply_payment(
    db: Session,
    credit_account_id: str,
    *,
    amount: int,
    method: str = PaymentMethod.CASH,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
    user_id: Optional[str] = None,
) -> CreditPayment:
    """
    Orden fijo:
      1. registrar el abono
      2. recalcular pagado/saldo/estado de la cuenta
      3. movimiento de caja (CXC = ingreso, CPP = egreso)
      4. bajar deuda del cliente (solo CXC)
    """
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidRequest("El monto del abono debe ser un entero positivo (centavos)")
    if method not in PaymentMethod.ALL:
        raise InvalidRequest(f"Método de pago inválido: {method}")

    with LedgerTransaction(db, "apply_payment", credit_account_id=credit_account_id,
                           amount=amount, user_id=user_id) as tx:
        account = (
            db.query(CreditAccount)
            .filter(CreditAccount.id == credit_account_id)
            .with_for_update()
            .first()
        )
        if not account:
            raise NotFound("Cuenta de crédito no encontrada", credit_account_id=credit_account_id)

        if account.status == CreditAccountStatus.PAGADO:
            raise AlreadySettled("Esta cuenta ya está completamente pagada", credit_account_id=account.id)

        if amount > account.balance_amount:
            raise OverpaymentNotAllowed(
                f"El monto del abono (C$ {amount / 100:.2f}) excede el saldo pendiente "
                f"(C$ {account.balance_amount / 100:.2f})",
                credit_account_id=account.id,
            )

        customer = None
        if account.account_type == CreditAccountType.CXC and account.customer_id:
            customer = _lock_customer(db, account.customer_id)

        tx.step("append_payment")
        payment = CreditPayment(
            credit_account_id=account.id,
            amount=amount,
            payment_method=method,
            reference=reference,
            notes=notes,
            created_by=user_id,
        )
        db.add(payment)

        tx.step("update_account")
        account.register_paid(amount)

        tx.step("record_cash")
        cash.record_movement(
            db,
            branch_id=account.branch_id,
            move_type=CashMoveType.INCOME if account.account_type == CreditAccountType.CXC else CashMoveType.EXPENSE,
            category=CashCategory.CREDIT_PAYMENT,
            amount=amount,
            credit_account_id=account.id,
            payment_method=method,
            reference=reference,
            description=f"Abono a {account.account_type} - {account.id}",
            notes=notes,
            created_by=user_id,
        )

        if customer is not None:
            tx.step("lower_customer_debt")
            lower_customer_debt(db, customer, amount)

    return payment


# -------------------------
# Consultas
# -------------------------
def get_account(db: Session, credit_account_id: str) -> CreditAccount:
    account = db.get(CreditAccount, credit_account_id)
    if not account:
        raise NotFound("Cuenta de crédito no encontrada", credit_account_id=credit_account_id)
    return account


def list_accounts(db: Session, branch_id: str, *, account_type: Optional[str] = None,
                  status: Optional[str] = None) -> list[CreditAccount]:
    q = db.query(CreditAccount).filter(CreditAccount.branch_id == branch_id)
    if account_type:
        q = q.filter(CreditAccount.account_type == account_type)
    if status:
        q = q.filter(CreditAccount.status == status)
    return q.order_by(CreditAccount.created_at.desc()).all()


def payment_history(db: Session, credit_account_id: str) -> list[CreditPayment]:
    get_account(db, credit_account_id)
    return (
        db.query(CreditPayment)
        .filter(CreditPayment.credit_account_id == credit_account_id)
        .order_by(CreditPayment.created_at.asc())
        .all()
    )


def open_balance_for_customer(db: Session, customer_id: str) -> int:
    """Suma de saldos CXC abiertos; debe coincidir con Customer.current_debt."""
    accounts = (
        db.query(CreditAccount)
        .filter(CreditAccount.customer_id == customer_id, CreditAccount.account_type == CreditAccountType.CXC)
        .all()
    )
    return sum(a.balance_amount for a in accounts)
