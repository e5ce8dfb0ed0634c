"""Ventas: creación y anulación con sus efectos en stock, crédito y caja.

Orden de escritura al crear:
  1. verificar stock de todas las líneas (todo o nada)
  2. descontar stock
  3. guardar la venta ACTIVE
  4. CREDIT: abrir CXC y subir deuda del cliente
  5. CASH: ingreso de caja

Al anular se aplican las contrapartidas en el mismo orden y la venta queda
CANCELLED; nada se borra salvo la CXC sin abonos.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from models import new_id, utcnow
from models.branch import Branch
from models.cash_movement import CashCategory, CashMoveType, PaymentMethod
from models.credit_account import CreditAccountType
from models.customer import Customer
from models.kardex import StockMoveType
from models.sale import Sale, SaleItem, SaleStatus, SaleType
from services import cash, credit
from services.errors import (
    AlreadyCancelled,
    CreditLimitExceeded,
    InvalidRequest,
    NotFound,
)
from services.lines import compute_totals, resolve_lines
from services.settings import setting
from services.stock import add_stock, ensure_available, remove_stock, required_by_product
from services.unit_of_work import LedgerTransaction

logger = logging.getLogger(__name__)


def create_sale(
    db: Session,
    *,
    branch_id: str,
    sale_type: str,
    items: list,
    created_by: str,
    customer_id: Optional[str] = None,
    payment_method: Optional[str] = PaymentMethod.CASH,
    tax: int = 0,
    discount: int = 0,
    notes: Optional[str] = None,
) -> Sale:
    if sale_type not in SaleType.ALL:
        raise InvalidRequest(f"Tipo de venta inválido: {sale_type}")
    if sale_type == SaleType.CREDIT and not customer_id:
        raise InvalidRequest("Se requiere un cliente para ventas a crédito")
    if payment_method and payment_method not in PaymentMethod.ALL:
        raise InvalidRequest(f"Método de pago inválido: {payment_method}")

    sale_id = new_id()
    with LedgerTransaction(db, "create_sale", sale_id=sale_id, branch_id=branch_id, user_id=created_by) as tx:
        tx.step("validate")
        if not db.get(Branch, branch_id):
            raise NotFound("Sucursal no encontrada", branch_id=branch_id)

        lines = resolve_lines(db, items, price_field="unit_price")
        subtotal, tax, discount, total = compute_totals(lines, tax=tax, discount=discount)

        customer = None
        if customer_id:
            customer = db.query(Customer).filter(Customer.id == customer_id).with_for_update().first()
            if not customer or not customer.is_active:
                raise NotFound("Cliente no encontrado", customer_id=customer_id)

        if sale_type == SaleType.CREDIT and total > customer.available_credit:
            raise CreditLimitExceeded(
                f"Límite de crédito excedido. Disponible: C$ {customer.available_credit / 100:.2f}, "
                f"Requerido: C$ {total / 100:.2f}",
                customer_id=customer.id,
            )

        ensure_available(db, branch_id=branch_id, required=required_by_product(lines))

        tx.step("decrement_stock")
        for line in lines:
            remove_stock(
                db,
                product_id=line.product_id,
                branch_id=branch_id,
                qty=line.base_quantity,
                move_type=StockMoveType.SALE_OUT,
                reference_id=sale_id,
                user_id=created_by,
                note=f"Venta {sale_id}",
            )

        tx.step("persist_sale")
        sale = Sale(
            id=sale_id,
            branch_id=branch_id,
            customer_id=customer_id,
            sale_type=sale_type,
            payment_method=payment_method,
            subtotal=subtotal,
            tax=tax,
            discount=discount,
            total=total,
            status=SaleStatus.ACTIVE,
            notes=notes,
            created_by=created_by,
        )
        for pos, line in enumerate(lines):
            sale.items.append(SaleItem(
                position=pos,
                product_id=line.product_id,
                product_name=line.product_name,
                unit_id=line.unit_id,
                quantity=line.quantity,
                base_quantity=line.base_quantity,
                unit_price=line.price,
                subtotal=line.subtotal,
            ))
        db.add(sale)

        if sale_type == SaleType.CREDIT:
            tx.step("open_cxc")
            credit.open_account(
                db,
                account_type=CreditAccountType.CXC,
                branch_id=branch_id,
                customer_id=customer.id,
                sale_id=sale_id,
                total_amount=total,
                due_days=setting("CXC_DEFAULT_DUE_DAYS"),
            )
            tx.step("raise_customer_debt")
            credit.raise_customer_debt(db, customer, total)

        elif total > 0:
            tx.step("record_cash")
            cash.record_movement(
                db,
                branch_id=branch_id,
                move_type=CashMoveType.INCOME,
                category=CashCategory.SALE,
                amount=total,
                sale_id=sale_id,
                payment_method=payment_method or PaymentMethod.CASH,
                description=f"Venta {sale_id}",
                created_by=created_by,
            )

    return sale


def cancel_sale(db: Session, sale_id: str, user_id: str) -> Sale:
    with LedgerTransaction(db, "cancel_sale", sale_id=sale_id, user_id=user_id) as tx:
        tx.step("load")
        sale = db.query(Sale).filter(Sale.id == sale_id).with_for_update(of=Sale).first()
        if not sale:
            raise NotFound("Venta no encontrada", sale_id=sale_id)
        if sale.status == SaleStatus.CANCELLED:
            raise AlreadyCancelled("Esta venta ya está cancelada", sale_id=sale_id)

        account = credit.find_by_origin(db, sale_id=sale.id, lock=True)
        credit.ensure_voidable(account)

        tx.step("restore_stock")
        for item in sale.items:
            add_stock(
                db,
                product_id=item.product_id,
                branch_id=sale.branch_id,
                qty=item.base_quantity,
                move_type=StockMoveType.SALE_VOID,
                reference_id=sale.id,
                user_id=user_id,
                note=f"Anulación venta {sale.id}",
            )

        if account is not None:
            tx.step("void_cxc")
            credit.void_account(db, account)

        originals = cash.find_by_origin(db, sale_id=sale.id, category=CashCategory.SALE)
        if originals:
            tx.step("reverse_cash")
            cash.reverse_movements(db, originals, description=f"Anulación venta {sale.id}", created_by=user_id)

        tx.step("mark_cancelled")
        sale.status = SaleStatus.CANCELLED
        sale.cancelled_by = user_id
        sale.cancelled_at = utcnow()

    return sale


def get_sale(db: Session, sale_id: str) -> Sale:
    sale = db.get(Sale, sale_id)
    if not sale:
        raise NotFound("Venta no encontrada", sale_id=sale_id)
    return sale


def list_sales(db: Session, branch_id: str, *, start: Optional[datetime] = None,
               end: Optional[datetime] = None, customer_id: Optional[str] = None,
               status: Optional[str] = None) -> list[Sale]:
    q = db.query(Sale).filter(Sale.branch_id == branch_id)
    if start:
        q = q.filter(Sale.created_at >= start)
    if end:
        q = q.filter(Sale.created_at < end)
    if customer_id:
        q = q.filter(Sale.customer_id == customer_id)
    if status:
        q = q.filter(Sale.status == status)
    return q.order_by(Sale.created_at.desc()).all()
