"""Transferencias entre sucursales.

Estados: REQUESTED -> PENDING -> IN_TRANSIT -> COMPLETED, y CANCELLED desde
cualquier estado no terminal. El stock sale del origen al despachar y entra al
destino al confirmar recepción; mientras tanto las unidades están "en tránsito"
y no cuentan en ninguna sucursal. Cancelar en tránsito devuelve al origen
exactamente lo que salió.
"""
import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from models import utcnow
from models.branch import Branch
from models.kardex import StockMoveType
from models.stock_transfer import StockTransfer, StockTransferItem, TransferStatus, TransferType
from services.errors import InvalidRequest, InvalidTransition, NotFound
from services.lines import resolve_lines
from services.stock import add_stock, ensure_available, remove_stock, required_by_product
from services.unit_of_work import LedgerTransaction

logger = logging.getLogger(__name__)


def _load(db: Session, transfer_id: str) -> StockTransfer:
    transfer = db.query(StockTransfer).filter(StockTransfer.id == transfer_id).with_for_update().first()
    if not transfer:
        raise NotFound("Transferencia no encontrada", transfer_id=transfer_id)
    return transfer


def _move_to(transfer: StockTransfer, target: str) -> None:
    if not transfer.can_move_to(target):
        raise InvalidTransition(
            f"Transición inválida: {transfer.status} -> {target}",
            transfer_id=transfer.id,
            status=transfer.status,
            target=target,
        )
    transfer.status = target


def create_transfer(
    db: Session,
    *,
    from_branch_id: str,
    to_branch_id: str,
    transfer_type: str,
    items: list,
    created_by: str,
    notes: Optional[str] = None,
) -> StockTransfer:
    if transfer_type not in TransferType.ALL:
        raise InvalidRequest(f"Tipo de transferencia inválido: {transfer_type}")
    if not from_branch_id or not to_branch_id:
        raise InvalidRequest("Se requieren sucursal de origen y destino")
    if from_branch_id == to_branch_id:
        raise InvalidRequest("La sucursal de origen y destino deben ser diferentes")

    with LedgerTransaction(db, "create_transfer", from_branch_id=from_branch_id,
                           to_branch_id=to_branch_id, user_id=created_by) as tx:
        tx.step("validate")
        if not db.get(Branch, from_branch_id) or not db.get(Branch, to_branch_id):
            raise NotFound("Sucursal no encontrada")

        lines = resolve_lines(db, items)

        # Un envío ya decidido debe tener existencias hoy; una solicitud se valida al despachar
        if transfer_type == TransferType.SEND:
            ensure_available(db, branch_id=from_branch_id, required=required_by_product(lines))

        tx.step("persist_transfer")
        transfer = StockTransfer.new(
            transfer_type=transfer_type,
            from_branch_id=from_branch_id,
            to_branch_id=to_branch_id,
            notes=notes,
            created_by=created_by,
        )
        for pos, line in enumerate(lines):
            transfer.items.append(StockTransferItem(
                position=pos,
                product_id=line.product_id,
                product_name=line.product_name,
                unit_id=line.unit_id,
                quantity=line.quantity,
                base_quantity=line.base_quantity,
            ))
        db.add(transfer)

    return transfer


def approve_transfer(db: Session, transfer_id: str, user_id: str) -> StockTransfer:
    """REQUESTED -> PENDING. No mueve stock."""
    with LedgerTransaction(db, "approve_transfer", transfer_id=transfer_id, user_id=user_id):
        transfer = _load(db, transfer_id)
        _move_to(transfer, TransferStatus.PENDING)
        transfer.approved_by = user_id
        transfer.approved_at = utcnow()
    return transfer


def ship_transfer(db: Session, transfer_id: str, user_id: str) -> StockTransfer:
    """PENDING -> IN_TRANSIT. Descuenta el stock del origen."""
    with LedgerTransaction(db, "ship_transfer", transfer_id=transfer_id, user_id=user_id) as tx:
        tx.step("load")
        transfer = _load(db, transfer_id)
        _move_to(transfer, TransferStatus.IN_TRANSIT)
        ensure_available(db, branch_id=transfer.from_branch_id, required=required_by_product(transfer.items))

        tx.step("decrement_source")
        for item in transfer.items:
            remove_stock(
                db,
                product_id=item.product_id,
                branch_id=transfer.from_branch_id,
                qty=item.base_quantity,
                move_type=StockMoveType.TRANSFER_OUT,
                reference_id=transfer.id,
                user_id=user_id,
                note=f"Envío transferencia {transfer.id}",
            )

        tx.step("mark_shipped")
        transfer.shipped_by = user_id
        transfer.shipped_at = utcnow()
    return transfer


def complete_transfer(db: Session, transfer_id: str, user_id: str) -> StockTransfer:
    """IN_TRANSIT -> COMPLETED. Suma el stock en destino."""
    with LedgerTransaction(db, "complete_transfer", transfer_id=transfer_id, user_id=user_id) as tx:
        tx.step("load")
        transfer = _load(db, transfer_id)
        _move_to(transfer, TransferStatus.COMPLETED)

        tx.step("increment_destination")
        for item in transfer.items:
            add_stock(
                db,
                product_id=item.product_id,
                branch_id=transfer.to_branch_id,
                qty=item.base_quantity,
                move_type=StockMoveType.TRANSFER_IN,
                reference_id=transfer.id,
                user_id=user_id,
                note=f"Recepción transferencia {transfer.id}",
            )

        tx.step("mark_completed")
        transfer.completed_by = user_id
        transfer.completed_at = utcnow()
    return transfer


def cancel_transfer(db: Session, transfer_id: str, user_id: str) -> StockTransfer:
    """
    Cualquier estado no terminal -> CANCELLED.
    Si ya se despachó, el stock vuelve al origen; si no, solo cambia el estado.
    """
    with LedgerTransaction(db, "cancel_transfer", transfer_id=transfer_id, user_id=user_id) as tx:
        tx.step("load")
        transfer = _load(db, transfer_id)
        was_shipped = transfer.status == TransferStatus.IN_TRANSIT
        _move_to(transfer, TransferStatus.CANCELLED)

        if was_shipped:
            tx.step("restore_source")
            for item in transfer.items:
                add_stock(
                    db,
                    product_id=item.product_id,
                    branch_id=transfer.from_branch_id,
                    qty=item.base_quantity,
                    move_type=StockMoveType.TRANSFER_RETURN,
                    reference_id=transfer.id,
                    user_id=user_id,
                    note=f"Cancelación transferencia {transfer.id}",
                )

        tx.step("mark_cancelled")
        transfer.cancelled_by = user_id
        transfer.cancelled_at = utcnow()
    return transfer


def get_transfer(db: Session, transfer_id: str) -> StockTransfer:
    transfer = db.get(StockTransfer, transfer_id)
    if not transfer:
        raise NotFound("Transferencia no encontrada", transfer_id=transfer_id)
    return transfer


def list_transfers(db: Session, branch_id: str, *, status: Optional[str] = None,
                   direction: Optional[str] = None) -> list[StockTransfer]:
    """direction: FROM (salientes), TO (entrantes) o ninguna (ambas)."""
    q = db.query(StockTransfer)
    if direction == "FROM":
        q = q.filter(StockTransfer.from_branch_id == branch_id)
    elif direction == "TO":
        q = q.filter(StockTransfer.to_branch_id == branch_id)
    else:
        q = q.filter(or_(StockTransfer.from_branch_id == branch_id, StockTransfer.to_branch_id == branch_id))
    if status:
        q = q.filter(StockTransfer.status == status)
    return q.order_by(StockTransfer.created_at.desc()).all()
