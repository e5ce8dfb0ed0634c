from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from models import db
from models.user import Role
from routes.guards import branch_scope, check_branch, json_body, parse_date, require_roles
from services import purchases as purchases_service

purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.post("")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def create():
    data = json_body()
    purchase = purchases_service.create_purchase(
        db.session,
        branch_id=branch_scope(data.get("branch_id")),
        supplier_id=data.get("supplier_id"),
        purchase_type=(data.get("purchase_type") or "").upper(),
        items=data.get("items") or [],
        created_by=current_user.id,
        payment_method=data.get("payment_method") or "CASH",
        tax=data.get("tax", 0),
        discount=data.get("discount", 0),
        invoice_number=data.get("invoice_number"),
        notes=data.get("notes"),
    )
    return jsonify(purchase.to_dict()), 201


@purchases_bp.get("")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def list_purchases():
    rows = purchases_service.list_purchases(
        db.session,
        branch_scope(),
        start=parse_date(request.args.get("start")),
        end=parse_date(request.args.get("end")),
        supplier_id=request.args.get("supplier_id"),
        status=request.args.get("status"),
    )
    return jsonify([p.to_dict() for p in rows])


@purchases_bp.get("/<purchase_id>")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def detail(purchase_id):
    purchase = purchases_service.get_purchase(db.session, purchase_id)
    check_branch(purchase.branch_id)
    return jsonify(purchase.to_dict())


@purchases_bp.patch("/<purchase_id>")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def update(purchase_id):
    check_branch(purchases_service.get_purchase(db.session, purchase_id).branch_id)
    data = json_body()
    purchase = purchases_service.update_purchase(
        db.session,
        purchase_id,
        notes=data.get("notes"),
        invoice_number=data.get("invoice_number"),
    )
    return jsonify(purchase.to_dict())


@purchases_bp.post("/<purchase_id>/cancel")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def cancel(purchase_id):
    check_branch(purchases_service.get_purchase(db.session, purchase_id).branch_id)
    purchase = purchases_service.cancel_purchase(db.session, purchase_id, current_user.id)
    return jsonify(purchase.to_dict())
