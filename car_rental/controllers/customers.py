from flask import Blueprint, jsonify

from ..utils.decorators import protect_blueprint
from .common import payload, services

bp = protect_blueprint(Blueprint("customers", __name__, url_prefix="/api/customers"))


def _customers():
    return services()["customers"]


@bp.get("/")
def list_customers():
    return jsonify(_customers().list_customers())


@bp.get("/status/<status>")
def by_status(status):
    return jsonify(_customers().list_customers(status=status))


@bp.get("/license/verified")
def verified():
    return jsonify(_customers().verified_licenses())


@bp.get("/license/unverified")
def unverified():
    return jsonify(_customers().unverified_licenses())


@bp.get("/with-rentals/current")
def with_current_rentals():
    return jsonify(_customers().with_current_rentals())


@bp.get("/search/<query>")
def search(query):
    return jsonify(_customers().search(query))


@bp.get("/<int:customer_id>")
def get_customer(customer_id):
    return jsonify(_customers().get_customer(customer_id))


@bp.post("/")
def create_customer():
    customer = _customers().create_customer(payload())
    return jsonify({"message": "Customer created", "customer": customer}), 201


@bp.put("/<int:customer_id>")
def update_customer(customer_id):
    customer = _customers().update_customer(customer_id, payload())
    return jsonify({"message": "Customer updated", "customer": customer})


@bp.patch("/<int:customer_id>/verify-license")
def verify_license(customer_id):
    customer = _customers().verify_license(customer_id, payload().get("verified", True))
    return jsonify({"message": "License status updated", "customer": customer})


@bp.delete("/<int:customer_id>")
def delete_customer(customer_id):
    _customers().delete_customer(customer_id)
    return jsonify({"message": "Customer deleted"})
