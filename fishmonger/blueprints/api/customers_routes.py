from flask import Blueprint

from ...utils.api_responses import APIResponse
from . import get_order_engine

customers_api_bp = Blueprint('customers_api', __name__, url_prefix='/customers')


@customers_api_bp.route('', methods=['GET'])
def list_customers():
    customers = get_order_engine().parties.list_customers()
    return APIResponse.success([customer.to_dict(include_counts=True) for customer in customers])


@customers_api_bp.route('', methods=['POST'])
def create_customer():
    customer = get_order_engine().parties.create_customer(APIResponse.json_body())
    return APIResponse.success(customer.to_dict(), message='Customer created', status_code=201)


@customers_api_bp.route('/<customer_id>', methods=['GET'])
def get_customer(customer_id):
    customer = get_order_engine().parties.find_customer(customer_id)
    return APIResponse.success(customer.to_dict(include_counts=True))


@customers_api_bp.route('/<customer_id>', methods=['PUT', 'PATCH'])
def update_customer(customer_id):
    customer = get_order_engine().parties.update_customer(customer_id, APIResponse.json_body())
    return APIResponse.success(customer.to_dict(), message='Customer updated')


@customers_api_bp.route('/<customer_id>', methods=['DELETE'])
def delete_customer(customer_id):
    """Refused with 409 while the customer has any order on record"""
    get_order_engine().parties.delete_customer(customer_id)
    return APIResponse.success({'id': customer_id}, message='Customer deleted')
