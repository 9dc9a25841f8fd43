from flask import Blueprint, current_app

api_bp = Blueprint('api', __name__, url_prefix='/api')


def get_order_engine():
    """Engine built in create_app for this application."""
    return current_app.extensions['order_engine']


# Register sub-blueprints
from .orders_routes import orders_api_bp  # noqa: E402
from .products_routes import products_api_bp  # noqa: E402
from .customers_routes import customers_api_bp  # noqa: E402
from .suppliers_routes import suppliers_api_bp  # noqa: E402

api_bp.register_blueprint(orders_api_bp)
api_bp.register_blueprint(products_api_bp)
api_bp.register_blueprint(customers_api_bp)
api_bp.register_blueprint(suppliers_api_bp)


def register_api_blueprints(app):
    app.register_blueprint(api_bp)
