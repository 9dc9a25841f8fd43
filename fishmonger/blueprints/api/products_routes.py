from flask import Blueprint, current_app

from ...utils.api_responses import APIResponse
from . import get_order_engine

products_api_bp = Blueprint('products_api', __name__, url_prefix='/products')

# JSON field -> model attribute
_PRODUCT_FIELD_MAP = {
    'name': 'name',
    'description': 'description',
    'price': 'price',
    'stock': 'stock',
    'unit': 'unit',
    'lowStockThreshold': 'low_stock_threshold',
    'supplierId': 'supplier_id',
}


def _product_fields(data):
    return {attr: data[key] for key, attr in _PRODUCT_FIELD_MAP.items() if key in data}


@products_api_bp.route('', methods=['GET'])
def list_products():
    products = get_order_engine().catalog.list_products()
    return APIResponse.success([product.to_dict() for product in products])


@products_api_bp.route('', methods=['POST'])
def create_product():
    product = get_order_engine().catalog.create_product(_product_fields(APIResponse.json_body()))
    return APIResponse.success(product.to_dict(), message='Product created', status_code=201)


@products_api_bp.route('/low-stock', methods=['GET'])
def low_stock():
    """Products at or below their threshold, CRITICAL under the configured ratio"""
    ratio = current_app.config.get('LOW_STOCK_CRITICAL_RATIO', 0.2)
    return APIResponse.success(get_order_engine().catalog.low_stock_products(ratio))


@products_api_bp.route('/<product_id>', methods=['GET'])
def get_product(product_id):
    return APIResponse.success(get_order_engine().catalog.find_product(product_id).to_dict())


@products_api_bp.route('/<product_id>', methods=['PUT', 'PATCH'])
def update_product(product_id):
    product = get_order_engine().catalog.update_product(product_id, _product_fields(APIResponse.json_body()))
    return APIResponse.success(product.to_dict(), message='Product updated')


@products_api_bp.route('/<product_id>', methods=['DELETE'])
def delete_product(product_id):
    get_order_engine().catalog.delete_product(product_id)
    return APIResponse.success({'id': product_id}, message='Product deleted')
