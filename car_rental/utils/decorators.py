from functools import wraps

from flask import current_app, g, jsonify, session


def _deny_anonymous():
    """Return a 401 response if no admin is logged in, else None."""
    g.admin_id = session.get("admin_id")
    if current_app.config.get("LOGIN_DISABLED"):
        return None
    if g.admin_id is None:
        return jsonify({"error": "Unauthorized"}), 401
    return None


def admin_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        denied = _deny_anonymous()
        if denied is not None:
            return denied
        return fn(*args, **kwargs)

    return wrapper


def protect_blueprint(bp):
    """Apply the admin check to every view of a blueprint."""
    bp.before_request(_deny_anonymous)
    return bp
