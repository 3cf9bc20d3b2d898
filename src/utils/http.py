"""
API Gateway proxy helpers shared by the handlers
"""
import base64
import json
import logging
from typing import Any, Dict, Optional

from models.errors import ErrorKind, MalformedBodyError, ServiceError, UnsupportedMethodError
from models.response import ErrorResponse

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "An internal server error occurred."

# Every ErrorKind must appear here
STATUS_BY_KIND = {
    ErrorKind.UNSUPPORTED_METHOD: 405,
    ErrorKind.MALFORMED_BODY: 400,
    ErrorKind.VALIDATION: 400,
    ErrorKind.UPSTREAM_FETCH: 502,
    ErrorKind.PERSISTENCE: 500,
    ErrorKind.CONFIGURATION: 500,
}

ERROR_BY_KIND = {
    ErrorKind.UNSUPPORTED_METHOD: None,  # uses the error message
    ErrorKind.MALFORMED_BODY: "Bad Request",
    ErrorKind.VALIDATION: "Bad Request",
    ErrorKind.UPSTREAM_FETCH: "Failed to retrieve cryptocurrency data.",
    ErrorKind.PERSISTENCE: None,  # set per handler
    ErrorKind.CONFIGURATION: "Internal configuration error.",
}


def get_http_method(event: Dict[str, Any]) -> Optional[str]:
    """Method from a REST API (v1) or HTTP API (v2) proxy event"""
    method = event.get('httpMethod')
    if method is None:
        method = ((event.get('requestContext') or {}).get('http') or {}).get('method')
    return method


def get_body(event: Dict[str, Any]) -> Optional[str]:
    body = event.get('body')
    if body and event.get('isBase64Encoded'):
        try:
            body = base64.b64decode(body, validate=True).decode('utf-8')
        except ValueError as e:
            raise MalformedBodyError(f"Invalid base64 request body: {str(e)}") from e
    return body


def require_method(event: Dict[str, Any], allowed: str) -> str:
    method = get_http_method(event)
    if method != allowed:
        raise UnsupportedMethodError(method, allowed)
    return method


def build_response(status_code: int, body: Any, allowed_origin: str = '*') -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json',
            'Access-Control-Allow-Origin': allowed_origin,
        },
        'body': json.dumps(body)
    }


def error_response(
    error: Exception,
    persistence_error: str = "Internal Server Error",
    allowed_origin: str = '*'
) -> Dict[str, Any]:
    """Map an exception to its status code and {error, details} body"""
    if not isinstance(error, ServiceError):
        logger.exception(f"Unhandled error: {str(error)}")
        payload = ErrorResponse(error=INTERNAL_ERROR, details=INTERNAL_ERROR)
        return build_response(500, payload.model_dump(), allowed_origin)

    status_code = STATUS_BY_KIND[error.kind]
    message = ERROR_BY_KIND[error.kind]
    if error.kind is ErrorKind.UNSUPPORTED_METHOD:
        message = error.message
    elif error.kind is ErrorKind.PERSISTENCE:
        message = persistence_error

    if status_code >= 500:
        logger.error(f"Request failed ({error.kind.value}): {error.message}")
    else:
        logger.warning(f"Request rejected ({error.kind.value}): {error.message}")

    payload = ErrorResponse(error=message, details=error.detail)
    return build_response(status_code, payload.model_dump(), allowed_origin)
