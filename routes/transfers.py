from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from models import db
from models.user import Role
from routes.guards import branch_scope, check_branch, json_body, require_roles
from services import transfers as transfers_service

transfers_bp = Blueprint("transfers", __name__, url_prefix="/api/transfers")


@transfers_bp.post("")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def create():
    data = json_body()
    transfer_type = (data.get("type") or "SEND").upper()
    # Un envío sale de mi sucursal; una solicitud llega a mi sucursal
    if transfer_type == "REQUEST":
        from_branch_id = data.get("from_branch_id")
        to_branch_id = branch_scope(data.get("to_branch_id"))
    else:
        from_branch_id = branch_scope(data.get("from_branch_id"))
        to_branch_id = data.get("to_branch_id")

    transfer = transfers_service.create_transfer(
        db.session,
        from_branch_id=from_branch_id,
        to_branch_id=to_branch_id,
        transfer_type=transfer_type,
        items=data.get("items") or [],
        created_by=current_user.id,
        notes=data.get("notes"),
    )
    return jsonify(transfer.to_dict()), 201


@transfers_bp.get("")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def list_transfers():
    rows = transfers_service.list_transfers(
        db.session,
        branch_scope(),
        status=request.args.get("status"),
        direction=(request.args.get("direction") or "").upper() or None,
    )
    return jsonify([t.to_dict() for t in rows])


@transfers_bp.get("/<transfer_id>")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def detail(transfer_id):
    transfer = transfers_service.get_transfer(db.session, transfer_id)
    check_branch(transfer.from_branch_id, transfer.to_branch_id)
    return jsonify(transfer.to_dict())


# Acción -> (servicio, lado de la transferencia que puede ejecutarla)
_ACTIONS = {
    "approve": (transfers_service.approve_transfer, "to"),
    "ship": (transfers_service.ship_transfer, "from"),
    "complete": (transfers_service.complete_transfer, "to"),
    "cancel": (transfers_service.cancel_transfer, "both"),
}


@transfers_bp.post("/<transfer_id>/<action>")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def transition(transfer_id, action):
    if action not in _ACTIONS:
        return jsonify({"error": "NOT_FOUND", "message": f"Acción desconocida: {action}"}), 404
    fn, side = _ACTIONS[action]

    transfer = transfers_service.get_transfer(db.session, transfer_id)
    if side == "from":
        check_branch(transfer.from_branch_id)
    elif side == "to":
        check_branch(transfer.to_branch_id)
    else:
        check_branch(transfer.from_branch_id, transfer.to_branch_id)

    transfer = fn(db.session, transfer_id, current_user.id)
    return jsonify(transfer.to_dict())
