from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from models import db
from models.user import Role
from routes.guards import branch_scope, json_body, require_roles, to_int
from services import stock as stock_service

stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@stock_bp.get("")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def list_stock():
    rows = stock_service.stock_by_branch(db.session, branch_scope())
    return jsonify([s.to_dict() for s in rows])


@stock_bp.get("/product/<product_id>")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def by_product(product_id):
    rows = stock_service.stock_by_product(db.session, product_id)
    return jsonify({
        "product_id": product_id,
        "branches": [s.to_dict() for s in rows],
        "in_transit": stock_service.units_in_transit(db.session, product_id),
    })


@stock_bp.get("/summary")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def summary():
    branch_id = branch_scope()
    return jsonify({
        "branch_id": branch_id,
        "total_units": stock_service.total_units(db.session, branch_id),
        "inventory_value": stock_service.inventory_value(db.session, branch_id),
    })


@stock_bp.get("/alerts")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def alerts():
    return jsonify(stock_service.low_stock_alerts(db.session, branch_scope()))


@stock_bp.post("/adjust")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def adjust():
    data = json_body()
    stock = stock_service.adjust_stock(
        db.session,
        product_id=data.get("product_id"),
        branch_id=branch_scope(data.get("branch_id")),
        new_quantity=data.get("quantity"),
        reason=data.get("reason"),
        user_id=current_user.id,
    )
    return jsonify(stock.to_dict())


@stock_bp.get("/kardex/<product_id>")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def kardex(product_id):
    rows = stock_service.movements(
        db.session,
        product_id=product_id,
        branch_id=branch_scope(),
        limit=to_int(request.args.get("limit"), 200),
    )
    return jsonify({
        "product_id": product_id,
        "in_transit": stock_service.units_in_transit(db.session, product_id),
        "movements": [m.to_dict() for m in rows],
    })
