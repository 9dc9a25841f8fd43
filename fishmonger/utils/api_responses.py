from flask import jsonify, request, Response
from typing import Any, Dict, Optional, List

from .error_messages import ErrorMessages as EM


class APIResponse:
    """Standardized API response envelope: {success, message, data|errors}"""

    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = 200) -> Response:
        response = jsonify({
            'success': True,
            'message': message,
            'data': data
        })
        response.status_code = status_code
        response.headers['Cache-Control'] = 'no-store'
        return response

    @staticmethod
    def error(message: str, errors: Optional[Dict] = None, status_code: int = 400) -> Response:
        response = jsonify({
            'success': False,
            'message': message,
            'errors': errors or {}
        })
        response.status_code = status_code
        response.headers['Cache-Control'] = 'no-store'
        return response

    @staticmethod
    def validation_error(errors: Dict[str, List[str]], message: str = "Validation failed") -> Response:
        return APIResponse.error(message=message, errors=errors, status_code=422)

    @staticmethod
    def not_found(message: str) -> Response:
        return APIResponse.error(message=message, status_code=404)

    @staticmethod
    def conflict(message: str, errors: Optional[Dict] = None) -> Response:
        return APIResponse.error(message=message, errors=errors, status_code=409)

    @staticmethod
    def json_body() -> Dict[str, Any]:
        """Request JSON object; anything else is a 422."""
        from ..services.errors import ValidationError

        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            raise ValidationError(EM.INVALID_JSON, field='body')
        return payload
