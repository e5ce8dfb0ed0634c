"""Compras: espejo de las ventas con el signo invertido.

Crear suma stock y, según el tipo, abre una CPP o registra el egreso de caja.
Anular resta lo recibido (si todavía está en bodega), elimina la CPP sin
abonos o registra el ingreso de contrapartida, y marca la compra CANCELLED.
"""
import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from models import new_id, utcnow
from models.branch import Branch
from models.cash_movement import CashCategory, CashMoveType, PaymentMethod
from models.credit_account import CreditAccountType
from models.kardex import StockMoveType
from models.purchase import Purchase, PurchaseItem, PurchaseStatus, PurchaseType
from models.supplier import Supplier
from services import cash, credit
from services.errors import (
    AlreadyCancelled,
    InvalidRequest,
    InvalidState,
    NotFound,
    StockInsufficientForReversal,
)
from services.lines import compute_totals, resolve_lines
from services.settings import setting
from services.stock import add_stock, ensure_available, remove_stock, required_by_product
from services.unit_of_work import LedgerTransaction

logger = logging.getLogger(__name__)


def generate_invoice_number() -> str:
    """INV-{YYYYMMDD}-{5 caracteres}"""
    alphabet = string.ascii_uppercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(5))
    return f"INV-{utcnow():%Y%m%d}-{suffix}"


def create_purchase(
    db: Session,
    *,
    branch_id: str,
    supplier_id: str,
    purchase_type: str,
    items: list,
    created_by: str,
    payment_method: Optional[str] = PaymentMethod.CASH,
    tax: int = 0,
    discount: int = 0,
    invoice_number: Optional[str] = None,
    notes: Optional[str] = None,
) -> Purchase:
    if purchase_type not in PurchaseType.ALL:
        raise InvalidRequest(f"Tipo de compra inválido: {purchase_type}")
    if not supplier_id:
        raise InvalidRequest("Se requiere un proveedor")
    if payment_method and payment_method not in PaymentMethod.ALL:
        raise InvalidRequest(f"Método de pago inválido: {payment_method}")

    invoice_number = (invoice_number or "").strip() or generate_invoice_number()
    purchase_id = new_id()

    with LedgerTransaction(db, "create_purchase", purchase_id=purchase_id, branch_id=branch_id,
                           supplier_id=supplier_id, user_id=created_by) as tx:
        tx.step("validate")
        if not db.get(Branch, branch_id):
            raise NotFound("Sucursal no encontrada", branch_id=branch_id)
        supplier = db.get(Supplier, supplier_id)
        if not supplier or not supplier.is_active:
            raise NotFound("Proveedor no encontrado", supplier_id=supplier_id)

        lines = resolve_lines(db, items, price_field="unit_cost")
        subtotal, tax, discount, total = compute_totals(lines, tax=tax, discount=discount)

        tx.step("increment_stock")
        for line in lines:
            add_stock(
                db,
                product_id=line.product_id,
                branch_id=branch_id,
                qty=line.base_quantity,
                move_type=StockMoveType.PURCHASE_IN,
                reference_id=purchase_id,
                user_id=created_by,
                note=f"Compra {invoice_number}",
            )

        tx.step("persist_purchase")
        purchase = Purchase(
            id=purchase_id,
            branch_id=branch_id,
            supplier_id=supplier_id,
            purchase_type=purchase_type,
            payment_method=payment_method,
            subtotal=subtotal,
            tax=tax,
            discount=discount,
            total=total,
            status=PurchaseStatus.COMPLETED,
            invoice_number=invoice_number,
            notes=notes,
            created_by=created_by,
        )
        for pos, line in enumerate(lines):
            purchase.items.append(PurchaseItem(
                position=pos,
                product_id=line.product_id,
                product_name=line.product_name,
                unit_id=line.unit_id,
                quantity=line.quantity,
                base_quantity=line.base_quantity,
                unit_cost=line.price,
                subtotal=line.subtotal,
            ))
        db.add(purchase)

        if purchase_type == PurchaseType.CREDIT:
            tx.step("open_cpp")
            credit.open_account(
                db,
                account_type=CreditAccountType.CPP,
                branch_id=branch_id,
                supplier_id=supplier_id,
                purchase_id=purchase_id,
                total_amount=total,
                due_days=supplier.credit_days,
                invoice_number=invoice_number,
            )

        elif total > 0:
            tx.step("record_cash")
            cash.record_movement(
                db,
                branch_id=branch_id,
                move_type=CashMoveType.EXPENSE,
                category=CashCategory.PURCHASE,
                amount=total,
                purchase_id=purchase_id,
                payment_method=payment_method or PaymentMethod.CASH,
                description=f"Compra {invoice_number} - {supplier.name}",
                created_by=created_by,
            )

    return purchase


def cancel_purchase(db: Session, purchase_id: str, user_id: str) -> Purchase:
    with LedgerTransaction(db, "cancel_purchase", purchase_id=purchase_id, user_id=user_id) as tx:
        tx.step("load")
        purchase = db.query(Purchase).filter(Purchase.id == purchase_id).with_for_update(of=Purchase).first()
        if not purchase:
            raise NotFound("Compra no encontrada", purchase_id=purchase_id)
        if purchase.status == PurchaseStatus.CANCELLED:
            raise AlreadyCancelled("Esta compra ya está cancelada", purchase_id=purchase_id)

        account = credit.find_by_origin(db, purchase_id=purchase.id, lock=True)
        credit.ensure_voidable(account)

        # Lo recibido pudo venderse ya: si no está completo en bodega, no se anula nada
        ensure_available(
            db,
            branch_id=purchase.branch_id,
            required=required_by_product(purchase.items),
            error=StockInsufficientForReversal,
        )

        tx.step("revert_stock")
        for item in purchase.items:
            remove_stock(
                db,
                product_id=item.product_id,
                branch_id=purchase.branch_id,
                qty=item.base_quantity,
                move_type=StockMoveType.PURCHASE_VOID,
                reference_id=purchase.id,
                user_id=user_id,
                note=f"Anulación compra {purchase.invoice_number or purchase.id}",
                error=StockInsufficientForReversal,
            )

        if account is not None:
            tx.step("void_cpp")
            credit.void_account(db, account)

        originals = cash.find_by_origin(db, purchase_id=purchase.id, category=CashCategory.PURCHASE)
        if originals:
            tx.step("reverse_cash")
            cash.reverse_movements(
                db,
                originals,
                description=f"Cancelación Compra {purchase.invoice_number or purchase.id}",
                created_by=user_id,
            )

        tx.step("mark_cancelled")
        purchase.status = PurchaseStatus.CANCELLED
        purchase.cancelled_by = user_id
        purchase.cancelled_at = utcnow()

    return purchase


def update_purchase(db: Session, purchase_id: str, *, notes: Optional[str] = None,
                    invoice_number: Optional[str] = None) -> Purchase:
    """Solo notas y número de factura; ítems y montos no se editan."""
    with LedgerTransaction(db, "update_purchase", purchase_id=purchase_id):
        purchase = db.get(Purchase, purchase_id)
        if not purchase:
            raise NotFound("Compra no encontrada", purchase_id=purchase_id)

        window = setting("PURCHASE_EDIT_WINDOW_DAYS")
        if purchase.created_at < utcnow() - timedelta(days=window):
            raise InvalidState(f"Solo se pueden editar compras de los últimos {window} días",
                               purchase_id=purchase_id)

        if notes is not None:
            purchase.notes = notes
        if invoice_number is not None and invoice_number.strip():
            purchase.invoice_number = invoice_number.strip()
            account = credit.find_by_origin(db, purchase_id=purchase.id)
            if account is not None:
                account.invoice_number = purchase.invoice_number

    return purchase


def get_purchase(db: Session, purchase_id: str) -> Purchase:
    purchase = db.get(Purchase, purchase_id)
    if not purchase:
        raise NotFound("Compra no encontrada", purchase_id=purchase_id)
    return purchase


def list_purchases(db: Session, branch_id: str, *, start: Optional[datetime] = None,
                   end: Optional[datetime] = None, supplier_id: Optional[str] = None,
                   status: Optional[str] = None) -> list[Purchase]:
    q = db.query(Purchase).filter(Purchase.branch_id == branch_id)
    if start:
        q = q.filter(Purchase.created_at >= start)
    if end:
        q = q.filter(Purchase.created_at < end)
    if supplier_id:
        q = q.filter(Purchase.supplier_id == supplier_id)
    if status:
        q = q.filter(Purchase.status == status)
    return q.order_by(Purchase.created_at.desc()).all()
