"""
Price Lookup API Handler
POST {cryptoId, email}: fetch the current price, record the search and email the result
"""
import json
import logging
from functools import lru_cache
from typing import Dict, Any, Tuple

from models.errors import MalformedBodyError, RequestValidationError, ServiceError
from services.search_service import SearchService
from utils.config import LookupSettings
from utils.http import build_response, error_response, get_body, require_method

logger = logging.getLogger()
logger.setLevel(logging.INFO)

PERSISTENCE_ERROR = "Failed to record search."


@lru_cache(maxsize=1)
def get_settings() -> LookupSettings:
    return LookupSettings.from_env()


@lru_cache(maxsize=1)
def get_search_service() -> SearchService:
    """Service graph built once per Lambda container"""
    return SearchService.from_settings(get_settings())


def parse_lookup_request(event: Dict[str, Any]) -> Tuple[str, str]:
    """
    Extract cryptoId and recipient email from the request body

    Raises:
        MalformedBodyError: body missing, not JSON or not a JSON object
        RequestValidationError: a field is missing or invalid
    """
    body = get_body(event)
    if not body:
        raise MalformedBodyError("Missing request body for POST")

    try:
        parsed = json.loads(body)
    except json.JSONDecodeError as e:
        raise MalformedBodyError(f"Invalid JSON format in request body: {str(e)}") from e

    if not isinstance(parsed, dict):
        raise MalformedBodyError("Request body must be a JSON object")

    crypto_id = parsed.get('cryptoId')
    recipient_email = parsed.get('email')
    logger.info(f"POST request body parsed: cryptoId={crypto_id}, recipientEmail={recipient_email}")

    if not crypto_id:
        raise RequestValidationError("Missing 'cryptoId' in request body", field='cryptoId')
    if not isinstance(crypto_id, str):
        raise RequestValidationError("Invalid 'cryptoId' in request body", field='cryptoId')
    if not recipient_email:
        raise RequestValidationError("Missing 'email' in request body", field='email')
    if not isinstance(recipient_email, str) or '@' not in recipient_email:
        raise RequestValidationError("Invalid 'email' format in request body", field='email')

    return crypto_id, recipient_email


def handle(event: Dict[str, Any], search_service: SearchService, allowed_origin: str = '*') -> Dict[str, Any]:
    try:
        require_method(event, 'POST')
        crypto_id, recipient_email = parse_lookup_request(event)
        record = search_service.record_search_and_notify(crypto_id, recipient_email)
        return build_response(200, record.model_dump(), allowed_origin)
    except Exception as e:
        return error_response(e, PERSISTENCE_ERROR, allowed_origin)


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Lambda entry point"""
    logger.info(f"Price lookup handler received event: {json.dumps(event, default=str)}")

    try:
        settings = get_settings()
        search_service = get_search_service()
    except ServiceError as e:
        return error_response(e, PERSISTENCE_ERROR)

    return handle(event, search_service, settings.allowed_origin)
