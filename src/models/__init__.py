from .search import SearchRecord, EmailContent, DeliveryReceipt
from .response import ErrorResponse
from .errors import ErrorKind, ServiceError

__all__ = [
    "SearchRecord",
    "EmailContent",
    "DeliveryReceipt",
    "ErrorResponse",
    "ErrorKind",
    "ServiceError",
]
