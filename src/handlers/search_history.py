"""
Search History API Handler
GET ?email=...: list every recorded search for a recipient
"""
import json
import logging
from functools import lru_cache
from typing import Dict, Any

from models.errors import RequestValidationError, ServiceError
from services.dynamodb_service import DynamoDBService
from utils.config import StorageSettings
from utils.http import build_response, error_response, require_method

logger = logging.getLogger()
logger.setLevel(logging.INFO)

PERSISTENCE_ERROR = "Failed to retrieve search history."


@lru_cache(maxsize=1)
def get_settings() -> StorageSettings:
    return StorageSettings.from_env()


@lru_cache(maxsize=1)
def get_db_service() -> DynamoDBService:
    return DynamoDBService(get_settings().table_name)


def parse_history_request(event: Dict[str, Any]) -> str:
    params = event.get('queryStringParameters') or {}
    recipient_email = params.get('email')

    if not recipient_email:
        raise RequestValidationError("Missing 'email' query string parameter", field='email')
    if not isinstance(recipient_email, str) or '@' not in recipient_email:
        raise RequestValidationError("Invalid 'email' format in query string parameter", field='email')
    return recipient_email


def handle(event: Dict[str, Any], db_service: DynamoDBService, allowed_origin: str = '*') -> Dict[str, Any]:
    try:
        require_method(event, 'GET')
        recipient_email = parse_history_request(event)

        logger.info(f"Fetching history for email: {recipient_email}")
        records = db_service.scan_by_email(recipient_email)
        return build_response(200, [record.model_dump() for record in records], allowed_origin)
    except Exception as e:
        return error_response(e, PERSISTENCE_ERROR, allowed_origin)


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Lambda entry point"""
    logger.info(f"Search history handler received event: {json.dumps(event, default=str)}")

    try:
        settings = get_settings()
        db_service = get_db_service()
    except ServiceError as e:
        return error_response(e, PERSISTENCE_ERROR)

    return handle(event, db_service, settings.allowed_origin)
