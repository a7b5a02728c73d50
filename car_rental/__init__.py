import logging

from flask import Flask, jsonify

from .config import Config
from .controllers.auth import bp as auth_bp
from .controllers.cars import bp as cars_bp
from .controllers.customers import bp as customers_bp
from .controllers.errors import register_error_handlers
from .controllers.rentals import bp as rentals_bp
from .models.store import Store
from .services.auth_service import AuthService
from .services.car_service import CarService
from .services.customer_service import CustomerService
from .services.rental_service import RentalService
from .utils.dates import today_factory
from .utils.log import configure_logging, init_request_logging

logger = logging.getLogger(__name__)


def create_app(config=None, store: Store | None = None, today=None):
    """
    Build the dashboard API.

    `config` is a config class/object or a plain mapping of overrides on top
    of `Config`. Tests pass their own `store` and a fixed `today` callable.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if isinstance(config, dict):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)

    configure_logging(app.config["LOG_LEVEL"])
    init_request_logging(app)

    if store is None:
        store = Store(app.config.get("DATA_PATH"))
    today = today or today_factory(app.config["TIMEZONE"])

    app.extensions["car_rental"] = {
        "store": store,
        "cars": CarService(store, today=today),
        "customers": CustomerService(store),
        "rentals": RentalService(
            store, today=today,
            allow_same_day_turnover=app.config["ALLOW_SAME_DAY_TURNOVER"],
        ),
        "auth": AuthService(store),
    }

    app.register_blueprint(auth_bp)
    app.register_blueprint(cars_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(rentals_bp)
    register_error_handlers(app)

    @app.get("/health")
    def health():
        return jsonify({"status": "OK", "today": today().isoformat()})

    if app.config.get("DEFAULT_ADMIN_EMAIL"):
        app.extensions["car_rental"]["auth"].ensure_default_admin(
            app.config["DEFAULT_ADMIN_EMAIL"], app.config["DEFAULT_ADMIN_PASSWORD"],
        )

    logger.info("App ready (env=%s, store=%s)", app.config["APP_ENV"], store.path or "<memory>")
    return app
