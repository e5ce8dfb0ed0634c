import re
from datetime import timedelta

import pytest

from models import utcnow
from models.cash_movement import CashCategory, CashMovement, CashMoveType
from models.credit_account import CreditAccountType
from models.purchase import PurchaseStatus, PurchaseType
from models.sale import SaleType
from services import cash, credit
from services.errors import (
    AlreadyCancelled,
    CreditAccountHasPayments,
    InvalidRequest,
    InvalidState,
    NotFound,
    StockInsufficientForReversal,
)
from services.purchases import (
    cancel_purchase,
    create_purchase,
    generate_invoice_number,
    get_purchase,
    list_purchases,
    update_purchase,
)
from services.sales import create_sale


def _buy(session, branch, supplier, product, qty, *, purchase_type=PurchaseType.CASH, cost=1500, **kw):
    return create_purchase(
        session,
        branch_id=branch.id,
        supplier_id=supplier.id,
        purchase_type=purchase_type,
        items=[{"product_id": product.id, "quantity": qty, "unit_cost": cost}],
        created_by="u1",
        **kw,
    )


def test_credit_purchase_opens_cpp_with_supplier_due_date(session, branch_a, supplier, product, qty_of):
    purchase = _buy(session, branch_a, supplier, product, 20, purchase_type=PurchaseType.CREDIT)

    assert qty_of(product, branch_a) == 20
    account = credit.find_by_origin(session, purchase_id=purchase.id)
    assert account.account_type == CreditAccountType.CPP
    assert account.supplier_id == supplier.id
    assert account.total_amount == 30000
    assert account.invoice_number == purchase.invoice_number
    assert abs((account.due_date - account.created_at) - timedelta(days=15)) < timedelta(seconds=5)
    assert cash.find_by_origin(session, purchase_id=purchase.id) == []


def test_cancel_fails_when_received_goods_were_sold(session, branch_a, supplier, product, qty_of):
    purchase = _buy(session, branch_a, supplier, product, 20, purchase_type=PurchaseType.CREDIT)
    create_sale(
        session,
        branch_id=branch_a.id,
        sale_type=SaleType.CASH,
        items=[{"product_id": product.id, "quantity": 15, "unit_price": 2000}],
        created_by="u1",
    )
    assert qty_of(product, branch_a) == 5

    with pytest.raises(StockInsufficientForReversal):
        cancel_purchase(session, purchase.id, "u1")

    assert qty_of(product, branch_a) == 5
    assert get_purchase(session, purchase.id).status == PurchaseStatus.COMPLETED
    assert credit.find_by_origin(session, purchase_id=purchase.id) is not None


def test_cancel_cash_purchase_reverts_stock_and_cash(session, branch_a, supplier, product, qty_of):
    purchase = _buy(session, branch_a, supplier, product, 10)
    assert cash.branch_balance(session, branch_a.id) == -15000

    cancel_purchase(session, purchase.id, "u2")

    assert qty_of(product, branch_a) == 0
    assert get_purchase(session, purchase.id).status == PurchaseStatus.CANCELLED
    moves = session.query(CashMovement).filter(CashMovement.purchase_id == purchase.id).all()
    assert sorted((m.move_type, m.category) for m in moves) == [
        (CashMoveType.EXPENSE, CashCategory.PURCHASE),
        (CashMoveType.INCOME, CashCategory.ADJUSTMENT),
    ]
    assert cash.branch_balance(session, branch_a.id) == 0


def test_cancel_credit_purchase_removes_cpp(session, branch_a, supplier, product, qty_of):
    purchase = _buy(session, branch_a, supplier, product, 20, purchase_type=PurchaseType.CREDIT)
    cancel_purchase(session, purchase.id, "u1")

    assert qty_of(product, branch_a) == 0
    assert credit.find_by_origin(session, purchase_id=purchase.id) is None


def test_cancel_purchase_with_payments_is_rejected(session, branch_a, supplier, product, qty_of):
    purchase = _buy(session, branch_a, supplier, product, 20, purchase_type=PurchaseType.CREDIT)
    account = credit.find_by_origin(session, purchase_id=purchase.id)
    credit.apply_payment(session, account.id, amount=1000, user_id="u1")

    with pytest.raises(CreditAccountHasPayments):
        cancel_purchase(session, purchase.id, "u1")
    assert qty_of(product, branch_a) == 20


def test_cancel_purchase_twice(session, branch_a, supplier, product):
    purchase = _buy(session, branch_a, supplier, product, 5)
    cancel_purchase(session, purchase.id, "u1")
    with pytest.raises(AlreadyCancelled):
        cancel_purchase(session, purchase.id, "u1")


def test_invoice_number_is_generated(session, branch_a, supplier, product):
    assert re.fullmatch(r"INV-\d{8}-[A-Z0-9]{5}", generate_invoice_number())

    purchase = _buy(session, branch_a, supplier, product, 1)
    assert re.fullmatch(r"INV-\d{8}-[A-Z0-9]{5}", purchase.invoice_number)

    own = _buy(session, branch_a, supplier, product, 1, invoice_number="F-001")
    assert own.invoice_number == "F-001"


def test_purchase_requires_supplier(session, branch_a, product):
    with pytest.raises(InvalidRequest):
        create_purchase(
            session,
            branch_id=branch_a.id,
            supplier_id=None,
            purchase_type=PurchaseType.CASH,
            items=[{"product_id": product.id, "quantity": 1, "unit_cost": 100}],
            created_by="u1",
        )


def test_unknown_supplier(session, branch_a, product, qty_of):
    with pytest.raises(NotFound):
        create_purchase(
            session,
            branch_id=branch_a.id,
            supplier_id="nope",
            purchase_type=PurchaseType.CASH,
            items=[{"product_id": product.id, "quantity": 1, "unit_cost": 100}],
            created_by="u1",
        )
    assert qty_of(product, branch_a) == 0


def test_update_only_within_edit_window(session, branch_a, supplier, product):
    purchase = _buy(session, branch_a, supplier, product, 1)

    updated = update_purchase(session, purchase.id, notes="Llegó incompleto", invoice_number="F-777")
    assert updated.notes == "Llegó incompleto"
    assert updated.invoice_number == "F-777"

    purchase.created_at = utcnow() - timedelta(days=8)
    session.commit()
    with pytest.raises(InvalidState):
        update_purchase(session, purchase.id, notes="tarde")
    assert get_purchase(session, purchase.id).notes == "Llegó incompleto"


def test_list_purchases_by_supplier(session, branch_a, supplier, product):
    _buy(session, branch_a, supplier, product, 1)
    _buy(session, branch_a, supplier, product, 2)

    assert len(list_purchases(session, branch_a.id, supplier_id=supplier.id)) == 2
    assert list_purchases(session, branch_a.id, supplier_id="otro") == []
