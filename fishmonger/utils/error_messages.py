"""
Centralized Error Messages

Single source of truth for user-facing error messages so the engine, the
stores and the API layer say the same thing about the same failure.

Usage:
    from fishmonger.utils.error_messages import ErrorMessages as EM

    raise ValidationError(EM.ORDER_ITEMS_REQUIRED, field='items')
    raise ConflictError(EM.CUSTOMER_HAS_ORDERS.format(count=3))
"""


class ErrorMessages:
    """User-facing error messages - never contain HTML or internal identifiers beyond ids the caller sent"""

    # ==================== GENERIC ====================
    RESOURCE_NOT_FOUND = "{resource} {identifier} not found."
    INVALID_JSON = "Request body must be a JSON object."
    FIELD_REQUIRED = "{field} is required."
    FIELD_NOT_IDENTIFIER = "{field} must be a string identifier."
    FIELD_NOT_A_NUMBER = "{field} must be a number."
    FIELD_NEGATIVE = "{field} cannot be negative."
    STORE_UNAVAILABLE = "The database is temporarily unavailable while trying to {operation}. Please retry."
    INTERNAL_ERROR = "An unexpected error occurred."

    # ==================== ORDERS ====================
    ORDER_ITEMS_REQUIRED = "At least one order item is required."
    ORDER_ITEM_MALFORMED = "Order item {index} must have a productId and a quantity."
    ORDER_QUANTITY_POSITIVE = "Quantity for product {product_id} must be greater than 0."
    ORDER_STATUS_INVALID = "Invalid order status {status!r}. Expected one of: {allowed}."
    ORDER_STATUS_REQUIRED = "Order status is required."
    ORDER_PRODUCT_UNPRICED = "Product {product} has no price and cannot be ordered."
    INSUFFICIENT_STOCK = "Insufficient stock for {product}. Available: {available}{unit}, requested: {requested}{unit}."

    # ==================== CATALOG ====================
    PRODUCT_REFERENCED = "Product {product} cannot be deleted because it appears on existing orders."
    PRODUCT_STOCK_NEGATIVE = "Stock cannot be negative."
    SUPPLIER_HAS_PRODUCTS = "This supplier cannot be deleted because it still has {count} product(s)."

    # ==================== CUSTOMERS ====================
    CUSTOMER_HAS_ORDERS = "This customer cannot be deleted because it has {count} order(s) on record."
    EMAIL_TAKEN = "Email {email} is already used by another {resource}."

    # ==================== NOTIFICATIONS ====================
    CUSTOMER_NO_PHONE = "Customer has no phone number."
    SMS_DISABLED = "SMS disabled"
    SMS_NOT_CONFIGURED = "SMS Gateway not configured. Please set SMS_GATEWAY_URL and SMS_GATEWAY_API_KEY"
    SMS_INVALID_PHONE = "Invalid phone number"
    SMS_GATEWAY_STATUS = "SMS Gateway returned status {status}"
    SMS_SEND_FAILED = "Failed to send SMS: {reason}"
