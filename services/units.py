"""Conversión de unidades a la unidad base de inventario."""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from models.product import Product
from models.purchase import PurchaseItem
from models.sale import SaleItem
from models.stock import MAX_QUANTITY
from models.stock_transfer import StockTransferItem
from models.unit_conversion import SalesType, UnitConversion, UnitType
from services.errors import InvalidQuantity, InvalidRequest, NotFound, UnitNotFound
from services.unit_of_work import LedgerTransaction

logger = logging.getLogger(__name__)

MAX_LINE_QTY = Decimal("99999999999.999")


def to_qty(val) -> Decimal:
    """
    Soporta cantidades con coma/punto. Devuelve Decimal con 3 decimales.
    Lanza InvalidQuantity si no es un número.
    """
    if val is None:
        raise InvalidQuantity("Cantidad requerida")
    s = str(val).strip().replace(",", ".")
    try:
        d = Decimal(s)
        if not d.is_finite():
            raise InvalidQuantity(f"Cantidad inválida: {val!r}")
        # quantize falla si el número excede la precisión del contexto
        d = d.quantize(Decimal("0.001"))
    except (InvalidOperation, ValueError):
        raise InvalidQuantity(f"Cantidad inválida: {val!r}")
    if abs(d) > MAX_LINE_QTY:
        raise InvalidQuantity(f"Cantidad fuera de rango: {val!r}")
    return d


def _to_factor(val) -> Decimal:
    try:
        d = Decimal(str(val).strip().replace(",", "."))
    except (InvalidOperation, ValueError):
        raise InvalidRequest(f"Factor de conversión inválido: {val!r}")
    if not d.is_finite() or d <= 0:
        raise InvalidRequest("El factor de conversión debe ser mayor que 0")
    return d


def _get_unit(session, unit_id: str, product_id: str) -> UnitConversion:
    unit = session.get(UnitConversion, unit_id)
    if not unit or unit.product_id != product_id or not unit.is_active:
        raise UnitNotFound(
            f"Unidad de conversión no encontrada para el producto: {unit_id}",
            unit_id=unit_id,
            product_id=product_id,
        )
    return unit


def resolve_base_quantity(session, product_id: str, quantity, unit_id: str | None = None) -> int:
    """
    cantidad_base = cantidad x factor.
    Sin unit_id la cantidad ya viene en unidad base (factor 1).
    El resultado debe ser entero: el inventario se lleva en unidades base enteras.
    """
    qty = to_qty(quantity)
    if qty <= 0:
        raise InvalidQuantity("La cantidad debe ser mayor a 0", product_id=product_id)

    factor = Decimal("1")
    if unit_id:
        factor = Decimal(_get_unit(session, unit_id, product_id).conversion_factor)

    base = qty * factor
    if base != base.to_integral_value():
        raise InvalidQuantity(
            f"La cantidad {qty} no equivale a un número entero de unidades base ({base})",
            product_id=product_id,
        )
    if base > MAX_QUANTITY:
        raise InvalidQuantity(
            f"La cantidad base {base} excede el máximo permitido ({MAX_QUANTITY})",
            product_id=product_id,
        )
    return int(base)


def convert_from_base(session, base_quantity: int, unit_id: str, product_id: str) -> Decimal:
    unit = _get_unit(session, unit_id, product_id)
    return (Decimal(base_quantity) / Decimal(unit.conversion_factor)).quantize(Decimal("0.001"))


def calculate_unit_price(session, base_price: int, unit_id: str, product_id: str, price_type: str = "retail") -> int:
    """Precio en centavos para una unidad: el propio de la unidad o precio_base x factor."""
    unit = _get_unit(session, unit_id, product_id)
    if price_type == "retail" and unit.retail_price:
        return unit.retail_price
    if price_type == "wholesale" and unit.wholesale_price:
        return unit.wholesale_price
    return int((Decimal(base_price) * Decimal(unit.conversion_factor)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# -------------------------
# Catálogo de unidades
# -------------------------
def product_units(session, product_id: str) -> list[UnitConversion]:
    return (
        session.query(UnitConversion)
        .filter(UnitConversion.product_id == product_id)
        .order_by(UnitConversion.conversion_factor.asc())
        .all()
    )


def get_base_unit(session, product_id: str) -> UnitConversion | None:
    return (
        session.query(UnitConversion)
        .filter(UnitConversion.product_id == product_id, UnitConversion.unit_type == UnitType.BASE)
        .first()
    )


def _check_duplicate(session, product_id: str, unit_name: str, factor: Decimal, exclude_id: str | None = None) -> None:
    q = session.query(UnitConversion).filter(
        UnitConversion.product_id == product_id,
        UnitConversion.unit_name == unit_name,
        UnitConversion.conversion_factor == factor,
    )
    if exclude_id:
        q = q.filter(UnitConversion.id != exclude_id)
    if q.first() is not None:
        raise InvalidRequest(f'Ya existe una unidad "{unit_name}" con factor {factor} para este producto')


def create_unit_conversion(
    session,
    *,
    product_id: str,
    unit_name: str,
    unit_symbol: str,
    conversion_factor,
    unit_type: str,
    retail_price: int | None = None,
    wholesale_price: int | None = None,
    sales_type: str = SalesType.BOTH,
) -> UnitConversion:
    unit_name = (unit_name or "").strip()
    unit_symbol = (unit_symbol or "").strip()
    if not unit_name or not unit_symbol:
        raise InvalidRequest("Nombre y símbolo de la unidad son obligatorios")
    if unit_type not in UnitType.ALL:
        raise InvalidRequest(f"Tipo de unidad inválido: {unit_type}")
    if sales_type not in SalesType.ALL:
        raise InvalidRequest(f"Tipo de venta inválido: {sales_type}")

    factor = _to_factor(conversion_factor)

    with LedgerTransaction(session, "create_unit_conversion", product_id=product_id):
        if not session.get(Product, product_id):
            raise NotFound("Producto no encontrado", product_id=product_id)

        if unit_type == UnitType.BASE:
            if factor != 1:
                raise InvalidRequest("La unidad base debe tener factor de conversión = 1")
            if get_base_unit(session, product_id):
                raise InvalidRequest("El producto ya tiene una unidad base definida")

        _check_duplicate(session, product_id, unit_name, factor)

        if unit_name in ("Caja", "Paquete", "Bulto", "Saco") and unit_type == UnitType.PURCHASE:
            logger.warning(
                'Nombre poco descriptivo para unidad de empaque "%s"; sugerido: "%s x%s"',
                unit_name, unit_name, factor,
            )

        unit = UnitConversion(
            product_id=product_id,
            unit_name=unit_name,
            unit_symbol=unit_symbol,
            conversion_factor=factor,
            unit_type=unit_type,
            retail_price=retail_price,
            wholesale_price=wholesale_price,
            sales_type=sales_type,
            is_active=True,
        )
        session.add(unit)
    return unit


def update_unit_conversion(session, unit_id: str, **changes) -> UnitConversion:
    """
    Cambios no retroactivos: las ventas/compras ya registradas guardan su base_quantity,
    así que cambiar un factor no altera anulaciones posteriores.
    """
    allowed = {"unit_name", "unit_symbol", "conversion_factor", "unit_type",
               "retail_price", "wholesale_price", "sales_type", "is_active"}
    unknown = set(changes) - allowed
    if unknown:
        raise InvalidRequest(f"Campos no editables: {', '.join(sorted(unknown))}")

    with LedgerTransaction(session, "update_unit_conversion", unit_id=unit_id):
        unit = session.get(UnitConversion, unit_id)
        if not unit:
            raise UnitNotFound("Unidad de conversión no encontrada", unit_id=unit_id)

        factor = Decimal(unit.conversion_factor)
        if changes.get("conversion_factor") is not None:
            factor = _to_factor(changes["conversion_factor"])

        if unit.unit_type == UnitType.BASE and factor != 1:
            raise InvalidRequest("La unidad base debe mantener factor de conversión = 1")

        new_type = changes.get("unit_type") or unit.unit_type
        if new_type not in UnitType.ALL:
            raise InvalidRequest(f"Tipo de unidad inválido: {new_type}")
        if new_type == UnitType.BASE and unit.unit_type != UnitType.BASE:
            if get_base_unit(session, unit.product_id):
                raise InvalidRequest("El producto ya tiene una unidad base definida")
            if changes.get("conversion_factor") is None:
                factor = Decimal("1")
            elif factor != 1:
                raise InvalidRequest("La unidad base debe tener factor de conversión = 1")

        new_name = (changes.get("unit_name") or unit.unit_name).strip()
        if "unit_name" in changes or "conversion_factor" in changes:
            _check_duplicate(session, unit.product_id, new_name, factor, exclude_id=unit.id)

        if "sales_type" in changes and changes["sales_type"] not in SalesType.ALL:
            raise InvalidRequest(f"Tipo de venta inválido: {changes['sales_type']}")

        unit.unit_name = new_name
        unit.conversion_factor = factor
        unit.unit_type = new_type
        for field in ("unit_symbol", "retail_price", "wholesale_price", "sales_type", "is_active"):
            if field in changes:
                setattr(unit, field, changes[field])
    return unit


def _unit_in_use(session, unit_id: str) -> bool:
    for model in (SaleItem, PurchaseItem, StockTransferItem):
        if session.query(model.id).filter(model.unit_id == unit_id).first() is not None:
            return True
    return False


def delete_unit_conversion(session, unit_id: str) -> None:
    with LedgerTransaction(session, "delete_unit_conversion", unit_id=unit_id):
        unit = session.get(UnitConversion, unit_id)
        if not unit:
            raise UnitNotFound("Unidad de conversión no encontrada", unit_id=unit_id)
        if unit.unit_type == UnitType.BASE:
            raise InvalidRequest("No se puede eliminar la unidad base del producto")
        if _unit_in_use(session, unit_id):
            # Hay líneas históricas que la referencian: se desactiva en lugar de borrar
            unit.is_active = False
            logger.info("Unidad %s en uso; desactivada en lugar de eliminada", unit_id)
        else:
            session.delete(unit)
