import logging
from collections import OrderedDict
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.branch import Branch
from models.kardex import StockMovement, StockMoveType
from models.product import Product
from models.stock import MAX_QUANTITY, Stock
from models.stock_transfer import StockTransfer, StockTransferItem, TransferStatus
from services.errors import InsufficientStock, InvalidQuantity, InvalidRequest, NotFound
from services.settings import setting
from services.unit_of_work import LedgerTransaction

logger = logging.getLogger(__name__)


def find_stock(db: Session, *, product_id: str, branch_id: str, lock: bool = False) -> Optional[Stock]:
    q = db.query(Stock).filter_by(product_id=product_id, branch_id=branch_id)
    if lock:
        q = q.with_for_update()
    return q.first()


def get_or_create_stock(db: Session, *, product_id: str, branch_id: str) -> Stock:
    """Fila de stock del par (producto, sucursal); se crea en cero la primera vez."""
    stock = find_stock(db, product_id=product_id, branch_id=branch_id, lock=True)
    if not stock:
        stock = Stock(
            product_id=product_id,
            branch_id=branch_id,
            quantity=0,
            min_stock=setting("STOCK_DEFAULT_MIN"),
            max_stock=setting("STOCK_DEFAULT_MAX"),
        )
        db.add(stock)
        db.flush()
    return stock


def _log_move(db: Session, stock: Stock, *, move_type: str, direction: int, qty: int,
              reference_id=None, user_id=None, note=None) -> StockMovement:
    if move_type not in StockMoveType.ALL:
        raise ValueError(f"move_type inválido: {move_type}")
    km = StockMovement(
        product_id=stock.product_id,
        branch_id=stock.branch_id,
        move_type=move_type,
        direction=direction,
        qty=qty,
        balance_after=stock.quantity,
        reference_id=reference_id,
        user_id=user_id,
        note=note,
    )
    db.add(km)
    return km


def add_stock(
    db: Session,
    *,
    product_id: str,
    branch_id: str,
    qty: int,
    move_type: str,
    reference_id: Optional[str] = None,
    user_id: Optional[str] = None,
    note: Optional[str] = None,
) -> Stock:
    """
    Suma stock en una sucursal (compra, recepción, anulación de venta).
    Registra kardex de entrada.
    """
    if qty <= 0:
        raise InvalidQuantity("qty debe ser > 0")

    stock = get_or_create_stock(db, product_id=product_id, branch_id=branch_id)
    if stock.quantity + qty > MAX_QUANTITY:
        raise InvalidQuantity(
            f"El stock excedería el máximo permitido ({MAX_QUANTITY})",
            product_id=product_id,
            branch_id=branch_id,
        )
    stock.quantity = stock.quantity + qty
    _log_move(db, stock, move_type=move_type, direction=1, qty=qty,
              reference_id=reference_id, user_id=user_id, note=note)
    return stock


def remove_stock(
    db: Session,
    *,
    product_id: str,
    branch_id: str,
    qty: int,
    move_type: str,
    reference_id: Optional[str] = None,
    user_id: Optional[str] = None,
    note: Optional[str] = None,
    error=InsufficientStock,
) -> Stock:
    """
    Resta stock en una sucursal (venta, envío, anulación de compra).
    Nunca deja el stock negativo.
    """
    if qty <= 0:
        raise InvalidQuantity("qty debe ser > 0")

    stock = get_or_create_stock(db, product_id=product_id, branch_id=branch_id)
    if stock.quantity < qty:
        raise error(
            f"Stock insuficiente. Disponible={stock.quantity} requerido={qty}",
            product_id=product_id,
            branch_id=branch_id,
        )

    stock.quantity = stock.quantity - qty
    _log_move(db, stock, move_type=move_type, direction=-1, qty=qty,
              reference_id=reference_id, user_id=user_id, note=note)
    return stock


def required_by_product(lines: Iterable) -> "OrderedDict[str, int]":
    """Suma base_quantity por producto (una venta puede repetir producto en varias líneas)."""
    totals: "OrderedDict[str, int]" = OrderedDict()
    for line in lines:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.base_quantity
    return totals


def ensure_available(db: Session, *, branch_id: str, required: dict, error=InsufficientStock) -> None:
    """
    Verifica todo antes de escribir nada: si un solo producto no alcanza,
    la operación completa se rechaza.
    """
    for product_id, qty in required.items():
        stock = find_stock(db, product_id=product_id, branch_id=branch_id, lock=True)
        available = stock.quantity if stock else 0
        if available < qty:
            product = db.get(Product, product_id)
            name = product.name if product else product_id
            raise error(
                f"Stock insuficiente para {name}. Disponible: {available}, Requerido: {qty}",
                product_id=product_id,
                branch_id=branch_id,
                available=available,
                required=qty,
            )


# -------------------------
# Consultas y ajustes
# -------------------------
def stock_by_branch(db: Session, branch_id: str) -> list[Stock]:
    return (
        db.query(Stock)
        .join(Product, Product.id == Stock.product_id)
        .filter(Stock.branch_id == branch_id)
        .order_by(Product.name.asc())
        .all()
    )


def stock_by_product(db: Session, product_id: str) -> list[Stock]:
    """Existencias de un producto en todas las sucursales."""
    return (
        db.query(Stock)
        .join(Branch, Branch.id == Stock.branch_id)
        .filter(Stock.product_id == product_id)
        .order_by(Branch.name.asc())
        .all()
    )


def total_units(db: Session, branch_id: str) -> int:
    total = db.query(func.coalesce(func.sum(Stock.quantity), 0)).filter(Stock.branch_id == branch_id).scalar()
    return int(total or 0)


def inventory_value(db: Session, branch_id: str) -> int:
    """Valor del inventario a precio de costo, en centavos."""
    total = (
        db.query(func.coalesce(func.sum(Stock.quantity * Product.cost_price), 0))
        .join(Product, Product.id == Stock.product_id)
        .filter(Stock.branch_id == branch_id)
        .scalar()
    )
    return int(total or 0)


def low_stock_alerts(db: Session, branch_id: str) -> list[dict]:
    rows = (
        db.query(Stock, Product)
        .join(Product, Product.id == Stock.product_id)
        .filter(Stock.branch_id == branch_id, Stock.quantity <= Stock.min_stock, Product.is_active.is_(True))
        .order_by(Product.name.asc())
        .all()
    )
    return [
        {
            "stock": stock.to_dict(),
            "product": product.to_dict(),
            "current_quantity": stock.quantity,
            "min_stock": stock.min_stock,
            "deficit": stock.min_stock - stock.quantity,
        }
        for stock, product in rows
    ]


def units_in_transit(db: Session, product_id: str, from_branch_id: Optional[str] = None) -> int:
    """Unidades que salieron del origen y aún no llegan al destino."""
    q = (
        db.query(StockTransferItem)
        .join(StockTransfer, StockTransfer.id == StockTransferItem.transfer_id)
        .filter(StockTransfer.status == TransferStatus.IN_TRANSIT, StockTransferItem.product_id == product_id)
    )
    if from_branch_id:
        q = q.filter(StockTransfer.from_branch_id == from_branch_id)
    return sum(it.base_quantity for it in q.all())


def adjust_stock(db: Session, *, product_id: str, branch_id: str, new_quantity: int,
                 reason: str, user_id: Optional[str] = None) -> Stock:
    """Ajuste manual a una cantidad absoluta (conteo físico, merma, corrección)."""
    try:
        new_quantity = int(new_quantity)
    except (TypeError, ValueError):
        raise InvalidQuantity("Cantidad inválida", quantity=new_quantity)
    if new_quantity < 0:
        raise InvalidQuantity("La cantidad no puede ser negativa")
    if new_quantity > MAX_QUANTITY:
        raise InvalidQuantity(f"La cantidad excede el máximo permitido ({MAX_QUANTITY})")
    reason = (reason or "").strip()
    if not reason:
        raise InvalidRequest("Debe proporcionar una razón para el ajuste")

    with LedgerTransaction(db, "adjust_stock", product_id=product_id, branch_id=branch_id, user_id=user_id):
        if not db.get(Product, product_id):
            raise NotFound("Producto no encontrado", product_id=product_id)

        stock = get_or_create_stock(db, product_id=product_id, branch_id=branch_id)
        previous = stock.quantity
        delta = new_quantity - previous
        if delta == 0:
            return stock

        stock.quantity = new_quantity
        _log_move(db, stock, move_type=StockMoveType.ADJUST, direction=1 if delta > 0 else -1,
                  qty=abs(delta), user_id=user_id, note=reason[:255])

    logger.info("Ajuste de stock producto=%s sucursal=%s %s -> %s (%s)",
                product_id, branch_id, previous, new_quantity, reason)
    return stock


def movements(db: Session, *, product_id: str, branch_id: Optional[str] = None, limit: int = 200) -> list[StockMovement]:
    q = db.query(StockMovement).filter(StockMovement.product_id == product_id)
    if branch_id:
        q = q.filter(StockMovement.branch_id == branch_id)
    return q.order_by(StockMovement.created_at.desc()).limit(limit).all()
