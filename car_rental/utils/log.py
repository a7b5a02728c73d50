import json
import logging
import time
import uuid

from flask import g, request

request_logger = logging.getLogger("car_rental.request")

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stream handler to the package logger (idempotent)."""
    root = logging.getLogger("car_rental")
    root.setLevel(level.upper())
    if not any(getattr(h, "_car_rental", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._car_rental = True
        root.addHandler(handler)
    return root


def init_request_logging(app) -> None:
    """One JSON line per request, tagged with an X-Request-ID."""

    @app.before_request
    def _start_timer():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        g.request_started = time.time()

    @app.after_request
    def _log_request(response):
        started = g.get("request_started")
        duration_ms = int((time.time() - started) * 1000) if started else 0
        req_id = g.get("request_id") or uuid.uuid4().hex
        response.headers["X-Request-ID"] = req_id
        request_logger.info(json.dumps({
            "request_id": req_id,
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "duration_ms": duration_ms,
        }))
        return response
