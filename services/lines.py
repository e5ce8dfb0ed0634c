"""Líneas de venta/compra/transferencia: resolución de unidad, precio y subtotal."""
from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

from models.product import Product
from services.errors import InvalidRequest, NotFound
from services.units import resolve_base_quantity, to_qty


ResolvedLine = namedtuple(
    "ResolvedLine",
    "product_id product_name unit_id quantity base_quantity price subtotal",
)


def _cents(val, field: str) -> int:
    if isinstance(val, bool) or not isinstance(val, int):
        raise InvalidRequest(f"{field} debe ser un entero en centavos")
    if val < 0:
        raise InvalidRequest(f"{field} no puede ser negativo")
    return val


def line_subtotal(quantity: Decimal, price: int) -> int:
    return int((quantity * Decimal(price)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def resolve_lines(session, items, *, price_field: str | None = None) -> list[ResolvedLine]:
    """
    items: lista de dicts {product_id, quantity, unit_id?, <price_field>?}.
    La conversión a unidad base ocurre aquí, una sola vez, antes de tocar stock.
    """
    if not items:
        raise InvalidRequest("Debe incluir al menos un producto")

    lines = []
    for it in items:
        product_id = it.get("product_id")
        if not product_id:
            raise InvalidRequest("Cada línea requiere product_id")

        product = session.get(Product, product_id)
        if not product or not product.is_active:
            raise NotFound(f"Producto no encontrado: {product_id}", product_id=product_id)

        unit_id = it.get("unit_id") or None
        base_quantity = resolve_base_quantity(session, product_id, it.get("quantity"), unit_id)
        quantity = to_qty(it.get("quantity"))

        price = subtotal = 0
        if price_field:
            price = _cents(it.get(price_field, 0), price_field)
            subtotal = line_subtotal(quantity, price)

        lines.append(ResolvedLine(
            product_id=product_id,
            product_name=product.name,
            unit_id=unit_id,
            quantity=quantity,
            base_quantity=base_quantity,
            price=price,
            subtotal=subtotal,
        ))
    return lines


def compute_totals(lines, *, tax: int = 0, discount: int = 0) -> tuple[int, int, int, int]:
    """(subtotal, tax, discount, total); lo que mande el cliente como total se ignora."""
    tax = _cents(tax or 0, "tax")
    discount = _cents(discount or 0, "discount")
    subtotal = sum(line.subtotal for line in lines)
    total = subtotal + tax - discount
    if total < 0:
        raise InvalidRequest("El descuento no puede superar el subtotal más impuestos")
    return subtotal, tax, discount, total
