from flask import current_app, request


def services():
    """Service registry built by create_app()."""
    return current_app.extensions["car_rental"]


def payload() -> dict:
    """JSON body, falling back to form fields for plain HTML posts."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()
