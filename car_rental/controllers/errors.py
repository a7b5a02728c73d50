import logging

from flask import jsonify

from ..exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    RentalAppError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidStateError, 400),
    (ValidationError, 400),
    (AuthenticationError, 401),
)


def status_for(error: RentalAppError) -> int:
    for cls, status in STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def register_error_handlers(app) -> None:
    @app.errorhandler(RentalAppError)
    def _handle_app_error(error: RentalAppError):
        status = status_for(error)
        logger.info("%s -> %s: %s", type(error).__name__, status, error.message)
        body = {"error": error.message}
        body.update(error.payload())
        return jsonify(body), status

    @app.errorhandler(404)
    def _not_found(_error):
        return jsonify({"error": "Route not found"}), 404

    @app.errorhandler(405)
    def _method_not_allowed(_error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def _internal(error):
        logger.error("Unhandled error: %s", error, exc_info=True)
        return jsonify({"error": "Internal server error"}), 500
