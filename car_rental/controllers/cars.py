from flask import Blueprint, g, jsonify, request

from ..utils.decorators import protect_blueprint
from .common import payload, services

bp = protect_blueprint(Blueprint("cars", __name__, url_prefix="/api/cars"))


def _cars():
    return services()["cars"]


@bp.get("/")
def list_cars():
    """Cars list with filters. Empty query params are ignored."""
    q = {k: (v or "").strip() for k, v in request.args.items()}
    cars = _cars().list_cars(
        status=q.get("status") or None,
        category=q.get("category") or None,
        brand=q.get("brand") or None,
        min_rate=q.get("min_rate") or None,
        max_rate=q.get("max_rate") or None,
    )
    return jsonify(cars)


@bp.get("/fleet")
def fleet():
    return jsonify(_cars().fleet_view())


@bp.get("/status/<status>")
def by_status(status):
    return jsonify(_cars().list_cars(status=status))


@bp.get("/category/<category>")
def by_category(category):
    return jsonify(_cars().list_cars(category=category))


@bp.get("/<int:car_id>")
def get_car(car_id):
    return jsonify(_cars().get_car(car_id))


@bp.post("/")
def create_car():
    car = _cars().create_car(payload())
    return jsonify({"message": "Car created", "car": car}), 201


@bp.route("/<int:car_id>", methods=["PUT", "PATCH"])
def update_car(car_id):
    car = _cars().update_car(car_id, payload())
    return jsonify({"message": "Car updated", "car": car})


@bp.patch("/<int:car_id>/status")
def set_status(car_id):
    car = _cars().set_status(car_id, payload().get("status"))
    return jsonify({"message": "Car status updated", "car": car})


@bp.delete("/<int:car_id>")
def delete_car(car_id):
    _cars().delete_car(car_id)
    return jsonify({"message": "Car deleted"})


@bp.post("/update-similar-images")
def update_similar_images():
    data = payload()
    count = _cars().update_similar_images(
        data.get("brand"), data.get("model"), data.get("year"), data.get("image_url"),
    )
    return jsonify({"message": f"Updated {count} cars", "updated": count})


# ---- technical sheet ----
@bp.get("/<int:car_id>/technical")
def technical(car_id):
    return jsonify(_cars().technical_sheet(car_id))


@bp.put("/<int:car_id>/technical")
def update_technical(car_id):
    data = payload()
    result = _cars().update_technical(car_id, data, admin_id=g.get("admin_id"), notes=data.get("notes"))
    return jsonify({"message": "Technical data updated", **result})


@bp.get("/<int:car_id>/technical/history")
def technical_history(car_id):
    return jsonify(_cars().technical_history(car_id))
