from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from models import db
from models.user import Role
from routes.guards import branch_scope, check_branch, json_body, require_roles
from services import credit as credit_service

credits_bp = Blueprint("credits", __name__, url_prefix="/api/credits")


@credits_bp.get("")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def list_accounts():
    rows = credit_service.list_accounts(
        db.session,
        branch_scope(),
        account_type=request.args.get("type"),
        status=request.args.get("status"),
    )
    return jsonify([a.to_dict() for a in rows])


@credits_bp.get("/<account_id>")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def detail(account_id):
    account = credit_service.get_account(db.session, account_id)
    check_branch(account.branch_id)
    data = account.to_dict()
    data["payments"] = [p.to_dict() for p in credit_service.payment_history(db.session, account_id)]
    return jsonify(data)


@credits_bp.post("/<account_id>/payments")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def pay(account_id):
    check_branch(credit_service.get_account(db.session, account_id).branch_id)
    data = json_body()
    payment = credit_service.apply_payment(
        db.session,
        account_id,
        amount=data.get("amount"),
        method=data.get("payment_method") or "CASH",
        reference=data.get("reference"),
        notes=data.get("notes"),
        user_id=current_user.id,
    )
    account = credit_service.get_account(db.session, account_id)
    return jsonify({"payment": payment.to_dict(), "account": account.to_dict()}), 201
