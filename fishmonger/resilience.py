"""Global error handlers: typed service errors become JSON envelopes, storage failures become 503."""

import logging

from sqlalchemy.exc import DBAPIError, OperationalError
from werkzeug.exceptions import HTTPException

from .extensions import db
from .services.errors import (
    InsufficientStockError,
    NotFoundError,
    OrderServiceError,
    StoreUnavailableError,
    ValidationError,
)
from .utils.api_responses import APIResponse
from .utils.error_messages import ErrorMessages as EM

logger = logging.getLogger(__name__)


def install_global_resilience_handlers(app):
    """Install request-teardown rollback and the error-to-status mapping."""

    @app.teardown_request
    def _rollback_on_error(exc):
        if exc is not None:
            try:
                db.session.rollback()
            except Exception:
                logger.exception("Rollback after failed request raised")

    @app.errorhandler(NotFoundError)
    def _not_found(err: NotFoundError):
        return APIResponse.not_found(err.message)

    @app.errorhandler(ValidationError)
    def _validation(err: ValidationError):
        return APIResponse.validation_error(err.errors, message=err.message)

    @app.errorhandler(InsufficientStockError)
    def _insufficient_stock(err: InsufficientStockError):
        return APIResponse.conflict(err.message, errors=err.details)

    @app.errorhandler(StoreUnavailableError)
    def _store_unavailable(err: StoreUnavailableError):
        return APIResponse.error(err.message, status_code=503)

    @app.errorhandler(OrderServiceError)
    def _service_error(err: OrderServiceError):
        # ConflictError and any other typed failure carry their own status
        return APIResponse.error(err.message, errors=err.details, status_code=err.status_code)

    @app.errorhandler(OperationalError)
    @app.errorhandler(DBAPIError)
    def _db_error_handler(err):
        try:
            db.session.rollback()
        except Exception:
            logger.exception("Rollback after database error raised")
        logger.error("Database error on request: %s", err.__class__.__name__)
        return APIResponse.error(EM.STORE_UNAVAILABLE.format(operation="serve this request"), status_code=503)

    @app.errorhandler(HTTPException)
    def _http_error(err: HTTPException):
        return APIResponse.error(err.description or err.name, status_code=err.code or 500)

    @app.errorhandler(Exception)
    def _unexpected(err: Exception):
        logger.exception("Unhandled error while serving request")
        return APIResponse.error(EM.INTERNAL_ERROR, status_code=500)
