from .secret_service import SecretCache
from .price_service import PriceService
from .dynamodb_service import DynamoDBService
from .email_service import EmailService
from .search_service import SearchService

__all__ = [
    "SecretCache",
    "PriceService",
    "DynamoDBService",
    "EmailService",
    "SearchService",
]
