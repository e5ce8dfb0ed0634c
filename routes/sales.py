from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from models import db
from models.user import Role
from routes.guards import branch_scope, check_branch, json_body, parse_date, require_roles
from services import sales as sales_service

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def create():
    data = json_body()
    sale = sales_service.create_sale(
        db.session,
        branch_id=branch_scope(data.get("branch_id")),
        sale_type=(data.get("sale_type") or "").upper(),
        items=data.get("items") or [],
        created_by=current_user.id,
        customer_id=data.get("customer_id"),
        payment_method=data.get("payment_method") or "CASH",
        tax=data.get("tax", 0),
        discount=data.get("discount", 0),
        notes=data.get("notes"),
    )
    return jsonify(sale.to_dict()), 201


@sales_bp.get("")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def list_sales():
    rows = sales_service.list_sales(
        db.session,
        branch_scope(),
        start=parse_date(request.args.get("start")),
        end=parse_date(request.args.get("end")),
        customer_id=request.args.get("customer_id"),
        status=request.args.get("status"),
    )
    return jsonify([s.to_dict() for s in rows])


@sales_bp.get("/<sale_id>")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def detail(sale_id):
    sale = sales_service.get_sale(db.session, sale_id)
    check_branch(sale.branch_id)
    return jsonify(sale.to_dict())


@sales_bp.post("/<sale_id>/cancel")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def cancel(sale_id):
    check_branch(sales_service.get_sale(db.session, sale_id).branch_id)
    sale = sales_service.cancel_sale(db.session, sale_id, current_user.id)
    return jsonify(sale.to_dict())
