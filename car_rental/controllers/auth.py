from flask import Blueprint, jsonify, session

from ..exceptions import AuthenticationError
from ..utils.decorators import admin_required
from .common import payload, services

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@bp.post("/login")
def login():
    data = payload()
    admin = services()["auth"].login((data.get("email") or "").strip(), data.get("password") or "")

    session.clear()
    session["admin_id"] = admin["id"]
    session["email"] = admin["email"]
    return jsonify({"message": "Login successful", "admin": admin})


@bp.post("/logout")
def logout():
    session.clear()
    return jsonify({"message": "Logged out"})


@bp.get("/me")
@admin_required
def me():
    admin = services()["auth"].get_admin(session.get("admin_id"))
    if admin is None:
        raise AuthenticationError("Not logged in")
    return jsonify({"admin": admin})
