from flask import Blueprint

from ...utils.api_responses import APIResponse
from . import get_order_engine

suppliers_api_bp = Blueprint('suppliers_api', __name__, url_prefix='/suppliers')


@suppliers_api_bp.route('', methods=['GET'])
def list_suppliers():
    suppliers = get_order_engine().catalog.list_suppliers()
    return APIResponse.success([supplier.to_dict(include_counts=True) for supplier in suppliers])


@suppliers_api_bp.route('', methods=['POST'])
def create_supplier():
    supplier = get_order_engine().catalog.create_supplier(APIResponse.json_body())
    return APIResponse.success(supplier.to_dict(), message='Supplier created', status_code=201)


@suppliers_api_bp.route('/<supplier_id>', methods=['GET'])
def get_supplier(supplier_id):
    supplier = get_order_engine().catalog.find_supplier(supplier_id)
    return APIResponse.success(supplier.to_dict(include_counts=True))


@suppliers_api_bp.route('/<supplier_id>', methods=['PUT', 'PATCH'])
def update_supplier(supplier_id):
    supplier = get_order_engine().catalog.update_supplier(supplier_id, APIResponse.json_body())
    return APIResponse.success(supplier.to_dict(), message='Supplier updated')


@suppliers_api_bp.route('/<supplier_id>', methods=['DELETE'])
def delete_supplier(supplier_id):
    get_order_engine().catalog.delete_supplier(supplier_id)
    return APIResponse.success({'id': supplier_id}, message='Supplier deleted')
