import logging

from flask import Blueprint, request

from ...utils.api_responses import APIResponse
from . import get_order_engine

logger = logging.getLogger(__name__)

orders_api_bp = Blueprint('orders_api', __name__, url_prefix='/orders')


@orders_api_bp.route('', methods=['GET'])
def list_orders():
    """List orders, newest first; `?status=` accepts canonical values and legacy aliases"""
    orders = get_order_engine().list_orders(request.args.get('status'))
    return APIResponse.success([order.to_dict() for order in orders])


@orders_api_bp.route('', methods=['POST'])
def create_order():
    data = APIResponse.json_body()
    order = get_order_engine().create_order(
        data.get('customerId'),
        data.get('items'),
        notes=data.get('notes'),
    )
    return APIResponse.success(order.to_dict(), message='Order created', status_code=201)


@orders_api_bp.route('/<order_id>', methods=['GET'])
def get_order(order_id):
    return APIResponse.success(get_order_engine().get_order(order_id).to_dict())


@orders_api_bp.route('/<order_id>', methods=['PUT', 'PATCH'])
def update_order(order_id):
    """Status transition, optionally with new notes"""
    data = APIResponse.json_body()
    result = get_order_engine().transition_status(order_id, data.get('status'), notes=data.get('notes'))
    payload = result.order.to_dict()
    payload['stockRestored'] = result.stock_restored
    payload['notificationQueued'] = result.notification_queued
    return APIResponse.success(payload, message='Order updated')


@orders_api_bp.route('/<order_id>', methods=['DELETE'])
def delete_order(order_id):
    result = get_order_engine().delete_order(order_id)
    return APIResponse.success(
        {'id': result.order_id, 'stockRestored': result.stock_restored},
        message='Order deleted',
    )


@orders_api_bp.route('/<order_id>/notify', methods=['POST'])
def notify_order(order_id):
    """Send the order-ready SMS now"""
    result = get_order_engine().send_ready_notification(order_id)
    if not result.success:
        return APIResponse.error(result.error or 'Failed to send SMS', status_code=502)
    return APIResponse.success({'orderId': order_id}, message='SMS notification sent successfully')
