from flask import Blueprint, jsonify, request

from ..utils.constants import READING_FIELDS
from ..utils.decorators import protect_blueprint
from .common import payload, services

bp = protect_blueprint(Blueprint("rentals", __name__, url_prefix="/api/rentals"))


def _rentals():
    return services()["rentals"]


@bp.get("/")
def list_rentals():
    return jsonify(_rentals().list_rentals())


@bp.get("/status/<status>")
def by_status(status):
    return jsonify(_rentals().list_rentals(status=status))


@bp.get("/customer/<int:customer_id>")
def by_customer(customer_id):
    return jsonify(_rentals().rentals_for_customer(customer_id))


@bp.get("/car/<int:car_id>")
def by_car(car_id):
    return jsonify(_rentals().rentals_for_car(car_id))


@bp.get("/current/active")
def current_active():
    return jsonify(_rentals().current_active())


@bp.get("/upcoming/week")
def upcoming_week():
    return jsonify(_rentals().upcoming_week())


@bp.get("/overdue")
def overdue():
    return jsonify(_rentals().overdue())


@bp.get("/quote")
def quote():
    """Price preview for the booking form: ?car_id=&start_date=&end_date="""
    a = request.args
    return jsonify(_rentals().quote(a.get("car_id"), a.get("start_date"), a.get("end_date")))


@bp.get("/<int:rental_id>")
def get_rental(rental_id):
    return jsonify(_rentals().get_rental(rental_id))


@bp.post("/")
def create_rental():
    rental = _rentals().create_rental(payload())
    return jsonify({"message": "Rental created", "rental": rental}), 201


@bp.put("/<int:rental_id>")
def update_rental(rental_id):
    rental = _rentals().update_rental(rental_id, payload())
    return jsonify({"message": "Rental updated", "rental": rental})


@bp.put("/<int:rental_id>/status")
def update_status(rental_id):
    data = payload()
    readings = {k: data[k] for k in READING_FIELDS if k in data}
    rental = _rentals().update_rental_status(rental_id, data.get("status"), readings)
    return jsonify({"message": "Rental status updated", "rental": rental})


@bp.put("/<int:rental_id>/payment")
def update_payment(rental_id):
    rental = _rentals().update_payment_status(rental_id, payload().get("payment_status"))
    return jsonify({"message": "Payment status updated", "rental": rental})


@bp.delete("/<int:rental_id>")
def delete_rental(rental_id):
    _rentals().delete_rental(rental_id)
    return jsonify({"message": "Rental deleted"})
