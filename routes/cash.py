from datetime import timedelta

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from models import db, utcnow
from models.user import Role
from routes.guards import branch_scope, json_body, parse_date, require_roles
from services import cash as cash_service

cash_bp = Blueprint("cash", __name__, url_prefix="/api/cash")


@cash_bp.get("/movements")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def movements():
    rows = cash_service.list_movements(
        db.session,
        branch_scope(),
        start=parse_date(request.args.get("start")),
        end=parse_date(request.args.get("end")),
        category=request.args.get("category"),
    )
    return jsonify([m.to_dict() for m in rows])


@cash_bp.post("/movements")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def register():
    data = json_body()
    m = cash_service.register_manual_movement(
        db.session,
        branch_id=branch_scope(data.get("branch_id")),
        move_type=(data.get("type") or "").upper(),
        category=(data.get("category") or "").upper(),
        amount=data.get("amount"),
        description=data.get("description"),
        payment_method=data.get("payment_method") or "CASH",
        reference=data.get("reference"),
        notes=data.get("notes"),
        created_by=current_user.id,
    )
    return jsonify(m.to_dict()), 201


@cash_bp.get("/balance")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def balance():
    branch_id = branch_scope()
    return jsonify({"branch_id": branch_id, "balance": cash_service.branch_balance(db.session, branch_id)})


@cash_bp.get("/daily")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def daily():
    day = parse_date(request.args.get("date"), utcnow())
    data = cash_service.daily_balance(db.session, branch_scope(), day.date())
    data["movements"] = [m.to_dict() for m in data["movements"]]
    return jsonify(data)


@cash_bp.get("/summary")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def summary():
    end = parse_date(request.args.get("end"), utcnow() + timedelta(days=1))
    start = parse_date(request.args.get("start"), end - timedelta(days=30))
    return jsonify(cash_service.summary_by_category(db.session, branch_scope(), start, end))
