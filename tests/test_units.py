from decimal import Decimal

import pytest

from models.sale import SaleType
from models.stock import MAX_QUANTITY
from models.unit_conversion import UnitConversion, UnitType
from services.errors import InvalidQuantity, InvalidRequest, UnitNotFound
from services.sales import create_sale
from services.units import (
    calculate_unit_price,
    convert_from_base,
    create_unit_conversion,
    delete_unit_conversion,
    get_base_unit,
    product_units,
    resolve_base_quantity,
    to_qty,
    update_unit_conversion,
)


def test_to_qty_accepts_comma_and_point():
    assert to_qty("1,5") == Decimal("1.500")
    assert to_qty(2) == Decimal("2.000")
    with pytest.raises(InvalidQuantity):
        to_qty("abc")
    with pytest.raises(InvalidQuantity):
        to_qty(None)


def test_without_unit_quantity_is_already_base(session, product):
    assert resolve_base_quantity(session, product.id, 7) == 7


def test_with_unit_multiplies_by_factor(session, product, dozen):
    assert resolve_base_quantity(session, product.id, 2, dozen.id) == 24
    assert resolve_base_quantity(session, product.id, "0.5", dozen.id) == 6


@pytest.mark.parametrize("qty", [0, -1, "0"])
def test_non_positive_quantity(session, product, qty):
    with pytest.raises(InvalidQuantity):
        resolve_base_quantity(session, product.id, qty)


def test_fraction_of_base_unit_is_rejected(session, product, dozen):
    with pytest.raises(InvalidQuantity):
        resolve_base_quantity(session, product.id, "1.5")
    with pytest.raises(InvalidQuantity):
        resolve_base_quantity(session, product.id, "0.1", dozen.id)


@pytest.mark.parametrize("qty", ["1e30", "-1e40", "NaN", "Infinity", "123456789012"])
def test_unrepresentable_quantity_is_rejected(session, product, qty):
    with pytest.raises(InvalidQuantity):
        resolve_base_quantity(session, product.id, qty)


def test_base_quantity_must_fit_stock_column(session, product, dozen):
    assert resolve_base_quantity(session, product.id, MAX_QUANTITY) == MAX_QUANTITY
    with pytest.raises(InvalidQuantity):
        resolve_base_quantity(session, product.id, MAX_QUANTITY + 1)
    # 200 millones de docenas = 2400 millones de unidades base
    with pytest.raises(InvalidQuantity):
        resolve_base_quantity(session, product.id, 200_000_000, dozen.id)


def test_unit_must_belong_to_product_and_be_active(session, product, other_product, dozen):
    with pytest.raises(UnitNotFound):
        resolve_base_quantity(session, product.id, 1, "nope")
    with pytest.raises(UnitNotFound):
        resolve_base_quantity(session, other_product.id, 1, dozen.id)

    dozen.is_active = False
    session.commit()
    with pytest.raises(UnitNotFound):
        resolve_base_quantity(session, product.id, 1, dozen.id)


def test_convert_from_base_and_unit_price(session, product, dozen):
    assert convert_from_base(session, 30, dozen.id, product.id) == Decimal("2.500")
    # sin precio propio: precio base x factor
    assert calculate_unit_price(session, 2000, dozen.id, product.id) == 24000

    dozen.retail_price = 22000
    session.commit()
    assert calculate_unit_price(session, 2000, dozen.id, product.id) == 22000
    assert calculate_unit_price(session, 1800, dozen.id, product.id, "wholesale") == 21600


def test_create_unit_rules(session, product, other_product):
    with pytest.raises(InvalidRequest):
        create_unit_conversion(session, product_id=product.id, unit_name="Quintal", unit_symbol="qq",
                               conversion_factor=0, unit_type=UnitType.PURCHASE)
    with pytest.raises(InvalidRequest):
        create_unit_conversion(session, product_id=other_product.id, unit_name="Unidad", unit_symbol="u",
                               conversion_factor=2, unit_type=UnitType.BASE)
    # product ya tiene unidad base
    with pytest.raises(InvalidRequest):
        create_unit_conversion(session, product_id=product.id, unit_name="Onza", unit_symbol="oz",
                               conversion_factor=1, unit_type=UnitType.BASE)

    qq = create_unit_conversion(session, product_id=product.id, unit_name="Quintal", unit_symbol="qq",
                                conversion_factor="100", unit_type=UnitType.PURCHASE, wholesale_price=175000)
    assert Decimal(qq.conversion_factor) == Decimal("100")

    with pytest.raises(InvalidRequest):
        create_unit_conversion(session, product_id=product.id, unit_name="Quintal", unit_symbol="QQ",
                               conversion_factor=100, unit_type=UnitType.PURCHASE)

    assert get_base_unit(session, product.id).unit_symbol == "lb"
    assert [u.unit_symbol for u in product_units(session, product.id)] == ["lb", "qq"]


def test_update_unit_is_not_retroactive(session, branch_a, product, dozen, put_stock):
    put_stock(product, branch_a, 100)
    sale = create_sale(
        session,
        branch_id=branch_a.id,
        sale_type=SaleType.CASH,
        items=[{"product_id": product.id, "quantity": 1, "unit_id": dozen.id, "unit_price": 24000}],
        created_by="u1",
    )

    update_unit_conversion(session, dozen.id, conversion_factor=10)

    assert resolve_base_quantity(session, product.id, 1, dozen.id) == 10
    assert sale.items[0].base_quantity == 12


def test_update_rejects_base_factor_change_and_unknown_fields(session, product):
    base = get_base_unit(session, product.id)
    with pytest.raises(InvalidRequest):
        update_unit_conversion(session, base.id, conversion_factor=2)
    with pytest.raises(InvalidRequest):
        update_unit_conversion(session, base.id, product_id="otro")
    with pytest.raises(UnitNotFound):
        update_unit_conversion(session, "nope", unit_symbol="x")


def test_delete_rules(session, branch_a, product, dozen, put_stock):
    base = get_base_unit(session, product.id)
    with pytest.raises(InvalidRequest):
        delete_unit_conversion(session, base.id)

    unused = create_unit_conversion(session, product_id=product.id, unit_name="Arroba", unit_symbol="@",
                                    conversion_factor=25, unit_type=UnitType.SALE)
    unused_id = unused.id
    delete_unit_conversion(session, unused_id)
    assert session.get(UnitConversion, unused_id) is None

    put_stock(product, branch_a, 100)
    create_sale(
        session,
        branch_id=branch_a.id,
        sale_type=SaleType.CASH,
        items=[{"product_id": product.id, "quantity": 1, "unit_id": dozen.id, "unit_price": 24000}],
        created_by="u1",
    )
    delete_unit_conversion(session, dozen.id)
    assert session.get(UnitConversion, dozen.id).is_active is False
