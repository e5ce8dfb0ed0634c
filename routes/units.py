from flask import Blueprint, jsonify
from flask_login import login_required

from models import db
from models.user import Role
from routes.guards import json_body, require_roles
from services import units as units_service

units_bp = Blueprint("units", __name__, url_prefix="/api/products/<product_id>/units")


@units_bp.get("")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def list_units(product_id):
    return jsonify([u.to_dict() for u in units_service.product_units(db.session, product_id)])


@units_bp.post("")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def create(product_id):
    data = json_body()
    unit = units_service.create_unit_conversion(
        db.session,
        product_id=product_id,
        unit_name=data.get("unit_name"),
        unit_symbol=data.get("unit_symbol"),
        conversion_factor=data.get("conversion_factor"),
        unit_type=(data.get("unit_type") or "").upper(),
        retail_price=data.get("retail_price"),
        wholesale_price=data.get("wholesale_price"),
        sales_type=(data.get("sales_type") or "BOTH").upper(),
    )
    return jsonify(unit.to_dict()), 201


@units_bp.patch("/<unit_id>")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def update(product_id, unit_id):
    unit = units_service.update_unit_conversion(db.session, unit_id, **json_body())
    return jsonify(unit.to_dict())


@units_bp.delete("/<unit_id>")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE)
def delete(product_id, unit_id):
    units_service.delete_unit_conversion(db.session, unit_id)
    return jsonify({"ok": True})


@units_bp.post("/convert")
@login_required
@require_roles(Role.ADMIN, Role.GERENTE, Role.CAJERO)
def convert(product_id):
    data = json_body()
    base = units_service.resolve_base_quantity(db.session, product_id, data.get("quantity"), data.get("unit_id"))
    return jsonify({"product_id": product_id, "base_quantity": base})
