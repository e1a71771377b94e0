# backend/backoffice/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate, jwt



def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    # Overrides must land before db.init_app; engines are created there
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    from .services.token_service import register_jwt_callbacks
    register_jwt_callbacks(jwt)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Path ids beyond the INTEGER range never reach the database
    from .validation import DatabaseIdConverter
    app.url_map.converters["int"] = DatabaseIdConverter

    # Register blueprints
    from .routes.admin_auth import admin_auth_bp
    from .routes.customer_auth import customer_auth_bp
    from .routes.admin_users import admin_users_bp
    from .routes.customers import customers_bp
    from .routes.product_categories import product_categories_bp
    from .routes.products import products_bp
    from .routes.product_options import product_options_bp
    from .routes.product_option_skus import product_option_skus_bp
    from .routes.orders import orders_bp
    from .routes.shipments import shipments_bp
    from .routes.inventory import inventory_bp
    from .routes.system import system_bp
    from .routes.media import media_bp

    app.register_blueprint(admin_auth_bp)
    app.register_blueprint(customer_auth_bp)
    app.register_blueprint(admin_users_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(product_categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(product_options_bp)
    app.register_blueprint(product_option_skus_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(shipments_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(system_bp)
    app.register_blueprint(media_bp)

    from .responses import error

    @app.errorhandler(404)
    def not_found(e):
        return error("Not found", 404)

    @app.errorhandler(413)
    def payload_too_large(e):
        return error("Request body too large", 413)

    @app.before_request
    def log_request():
        app.logger.info("Incoming request: %s %s", request.method, request.path)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config.get("CORS_ALLOWED_ORIGINS", ()):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
