from flask import jsonify, session
from flask_login import current_user, login_required, login_user, logout_user

from models import db
from models.user import User
from routes import auth_bp
from routes.guards import json_body


@auth_bp.post("/login")
def login():
    data = json_body()
    username = (data.get("username") or "").strip().lower()
    password = data.get("password") or ""

    user = db.session.query(User).filter(User.username == username, User.is_active.is_(True)).first()
    if not user or not user.check_password(password):
        return jsonify({"error": "INVALID_CREDENTIALS", "message": "Credenciales inválidas"}), 401

    login_user(user)
    return jsonify({"user": user.to_dict()})


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    session.clear()
    return jsonify({"ok": True})


@auth_bp.get("/me")
@login_required
def me():
    return jsonify({"user": current_user.to_dict()})
