from datetime import datetime, timedelta

import pytest

from models.cash_movement import CashCategory, CashMovement, CashMoveType
from services import cash
from services.errors import InvalidRequest, NotFound


def _manual(session, branch, move_type, category, amount, description="Movimiento"):
    return cash.register_manual_movement(
        session,
        branch_id=branch.id,
        move_type=move_type,
        category=category,
        amount=amount,
        description=description,
        created_by="u1",
    )


def test_balance_is_signed_sum(session, branch_a, branch_b):
    _manual(session, branch_a, CashMoveType.INCOME, CashCategory.ADJUSTMENT, 10000, "Fondo inicial")
    _manual(session, branch_a, CashMoveType.EXPENSE, CashCategory.EXPENSE, 2500, "Luz")
    _manual(session, branch_b, CashMoveType.INCOME, CashCategory.TRANSFER, 700, "Desde matriz")

    assert cash.branch_balance(session, branch_a.id) == 7500
    assert cash.branch_balance(session, branch_b.id) == 700


def test_manual_movement_validation(session, branch_a):
    with pytest.raises(InvalidRequest):
        _manual(session, branch_a, CashMoveType.INCOME, CashCategory.SALE, 100)
    with pytest.raises(InvalidRequest):
        _manual(session, branch_a, CashMoveType.INCOME, CashCategory.EXPENSE, 0)
    with pytest.raises(InvalidRequest):
        _manual(session, branch_a, "OTHER", CashCategory.EXPENSE, 100)
    with pytest.raises(InvalidRequest):
        _manual(session, branch_a, CashMoveType.EXPENSE, CashCategory.EXPENSE, 100, description=" ")
    with pytest.raises(NotFound):
        cash.register_manual_movement(session, branch_id="nope", move_type=CashMoveType.EXPENSE,
                                      category=CashCategory.EXPENSE, amount=100, description="x")
    assert session.query(CashMovement).count() == 0


def test_reversal_is_appended_once(session, branch_a):
    original = _manual(session, branch_a, CashMoveType.EXPENSE, CashCategory.EXPENSE, 900, "Papelería")

    first = cash.reverse_movements(session, [original], description="Reverso")
    session.commit()
    second = cash.reverse_movements(session, [original], description="Reverso")
    session.commit()

    assert len(first) == 1 and second == []
    assert first[0].move_type == CashMoveType.INCOME
    assert first[0].reverses_id == original.id
    assert cash.branch_balance(session, branch_a.id) == 0


def test_daily_balance_and_summary(session, branch_a):
    _manual(session, branch_a, CashMoveType.INCOME, CashCategory.ADJUSTMENT, 5000)
    _manual(session, branch_a, CashMoveType.EXPENSE, CashCategory.EXPENSE, 1200)
    _manual(session, branch_a, CashMoveType.EXPENSE, CashCategory.EXPENSE, 300)

    today = cash.list_movements(session, branch_a.id)[0].created_at.date()
    daily = cash.daily_balance(session, branch_a.id, today)
    assert (daily["income"], daily["expenses"], daily["net_balance"]) == (5000, 1500, 3500)
    assert len(daily["movements"]) == 3

    start = datetime.combine(today, datetime.min.time())
    summary = cash.summary_by_category(session, branch_a.id, start, start + timedelta(days=1))
    assert summary == {
        CashCategory.ADJUSTMENT: {"income": 5000, "expense": 0},
        CashCategory.EXPENSE: {"income": 0, "expense": 1500},
    }


def test_daily_balance_defaults_to_utc_day(session, branch_a, monkeypatch):
    late_night = datetime(2026, 3, 10, 23, 30)
    move = _manual(session, branch_a, CashMoveType.INCOME, CashCategory.ADJUSTMENT, 4000)
    move.created_at = late_night
    session.commit()

    monkeypatch.setattr(cash, "utcnow", lambda: late_night + timedelta(minutes=10))
    daily = cash.daily_balance(session, branch_a.id)

    assert daily["date"] == "2026-03-10"
    assert daily["income"] == 4000


def test_list_movements_by_category(session, branch_a):
    _manual(session, branch_a, CashMoveType.INCOME, CashCategory.ADJUSTMENT, 5000)
    _manual(session, branch_a, CashMoveType.EXPENSE, CashCategory.EXPENSE, 1200)

    rows = cash.list_movements(session, branch_a.id, category=CashCategory.EXPENSE)
    assert [m.amount for m in rows] == [1200]
