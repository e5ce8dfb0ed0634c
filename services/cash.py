"""Libro de caja por sucursal.

El libro solo crece: las anulaciones se registran como contrapartidas
(categoría ADJUSTMENT con ``reverses_id``), nunca borrando el movimiento original.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from models import utcnow
from models.branch import Branch
from models.cash_movement import CashCategory, CashMovement, CashMoveType, PaymentMethod
from services.errors import InvalidRequest, NotFound
from services.unit_of_work import LedgerTransaction

logger = logging.getLogger(__name__)


def record_movement(
    db: Session,
    *,
    branch_id: str,
    move_type: str,
    category: str,
    amount: int,
    description: str,
    payment_method: str = PaymentMethod.CASH,
    sale_id: Optional[str] = None,
    purchase_id: Optional[str] = None,
    credit_account_id: Optional[str] = None,
    reverses_id: Optional[str] = None,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> CashMovement:
    if move_type not in CashMoveType.ALL:
        raise ValueError(f"move_type inválido: {move_type}")
    if category not in CashCategory.ALL:
        raise ValueError(f"category inválida: {category}")
    if amount <= 0:
        raise InvalidRequest("El monto debe ser mayor a cero")

    m = CashMovement(
        branch_id=branch_id,
        move_type=move_type,
        category=category,
        amount=amount,
        description=description,
        payment_method=payment_method or PaymentMethod.CASH,
        sale_id=sale_id,
        purchase_id=purchase_id,
        credit_account_id=credit_account_id,
        reverses_id=reverses_id,
        reference=reference,
        notes=notes,
        created_by=created_by,
    )
    db.add(m)
    return m


def reverse_movements(db: Session, originals: list[CashMovement], *, description: str,
                      created_by: Optional[str] = None) -> list[CashMovement]:
    """Contrapartida de cada movimiento: mismo monto, signo opuesto, categoría ADJUSTMENT."""
    reversals = []
    for original in originals:
        already = db.query(CashMovement.id).filter(CashMovement.reverses_id == original.id).first()
        if already is not None:
            continue
        opposite = CashMoveType.EXPENSE if original.move_type == CashMoveType.INCOME else CashMoveType.INCOME
        reversals.append(record_movement(
            db,
            branch_id=original.branch_id,
            move_type=opposite,
            category=CashCategory.ADJUSTMENT,
            amount=original.amount,
            description=description,
            payment_method=original.payment_method,
            sale_id=original.sale_id,
            purchase_id=original.purchase_id,
            credit_account_id=original.credit_account_id,
            reverses_id=original.id,
            created_by=created_by,
        ))
    return reversals


def find_by_origin(db: Session, *, sale_id: Optional[str] = None, purchase_id: Optional[str] = None,
                   category: Optional[str] = None) -> list[CashMovement]:
    q = db.query(CashMovement)
    if sale_id:
        q = q.filter(CashMovement.sale_id == sale_id)
    if purchase_id:
        q = q.filter(CashMovement.purchase_id == purchase_id)
    if category:
        q = q.filter(CashMovement.category == category)
    return q.order_by(CashMovement.created_at.asc()).all()


def register_manual_movement(
    db: Session,
    *,
    branch_id: str,
    move_type: str,
    category: str,
    amount: int,
    description: str,
    payment_method: str = PaymentMethod.CASH,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
    created_by: Optional[str] = None,
) -> CashMovement:
    """Gasto operativo, ajuste o movimiento entre cajas registrado a mano."""
    description = (description or "").strip()
    if not description:
        raise InvalidRequest("La descripción es requerida")
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidRequest("El monto debe ser un entero positivo (centavos)")
    if move_type not in CashMoveType.ALL:
        raise InvalidRequest(f"Tipo de movimiento inválido: {move_type}")
    if category not in (CashCategory.EXPENSE, CashCategory.TRANSFER, CashCategory.ADJUSTMENT):
        raise InvalidRequest(f"Categoría no permitida para movimientos manuales: {category}")
    if payment_method not in PaymentMethod.ALL:
        raise InvalidRequest(f"Método de pago inválido: {payment_method}")

    with LedgerTransaction(db, "register_manual_movement", branch_id=branch_id, user_id=created_by):
        if not db.get(Branch, branch_id):
            raise NotFound("Sucursal no encontrada", branch_id=branch_id)
        m = record_movement(
            db,
            branch_id=branch_id,
            move_type=move_type,
            category=category,
            amount=amount,
            description=description,
            payment_method=payment_method,
            reference=reference,
            notes=notes,
            created_by=created_by,
        )
    return m


# -------------------------
# Consultas
# -------------------------
def _signed():
    return case((CashMovement.move_type == CashMoveType.INCOME, CashMovement.amount), else_=-CashMovement.amount)


def list_movements(db: Session, branch_id: str, *, start: Optional[datetime] = None,
                   end: Optional[datetime] = None, category: Optional[str] = None) -> list[CashMovement]:
    q = db.query(CashMovement).filter(CashMovement.branch_id == branch_id)
    if start:
        q = q.filter(CashMovement.created_at >= start)
    if end:
        q = q.filter(CashMovement.created_at < end)
    if category:
        q = q.filter(CashMovement.category == category)
    return q.order_by(CashMovement.created_at.asc()).all()


def branch_balance(db: Session, branch_id: str) -> int:
    """Saldo de caja = suma con signo de todos los movimientos (INCOME +, EXPENSE -)."""
    total = (
        db.query(func.coalesce(func.sum(_signed()), 0))
        .filter(CashMovement.branch_id == branch_id)
        .scalar()
    )
    return int(total or 0)


def daily_balance(db: Session, branch_id: str, day: Optional[date] = None) -> dict:
    # created_at se guarda en UTC; el día por defecto también
    day = day or utcnow().date()
    start = datetime.combine(day, time.min)
    moves = list_movements(db, branch_id, start=start, end=start + timedelta(days=1))

    income = sum(m.amount for m in moves if m.move_type == CashMoveType.INCOME)
    expenses = sum(m.amount for m in moves if m.move_type == CashMoveType.EXPENSE)
    return {
        "date": day.isoformat(),
        "income": income,
        "expenses": expenses,
        "net_balance": income - expenses,
        "movements": moves,
    }


def summary_by_category(db: Session, branch_id: str, start: datetime, end: datetime) -> dict:
    summary: dict[str, dict] = {}
    for m in list_movements(db, branch_id, start=start, end=end):
        bucket = summary.setdefault(m.category, {"income": 0, "expense": 0})
        if m.move_type == CashMoveType.INCOME:
            bucket["income"] += m.amount
        else:
            bucket["expense"] += m.amount
    return summary
