"""
Error taxonomy for the price lookup API.
Every failure carries a kind so handlers can map it to a response without
inspecting message text.
"""
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Closed set of failure categories"""
    UNSUPPORTED_METHOD = 'unsupported_method'
    MALFORMED_BODY = 'malformed_body'
    VALIDATION = 'validation'
    UPSTREAM_FETCH = 'upstream_fetch'
    PERSISTENCE = 'persistence'
    CONFIGURATION = 'configuration'


class ServiceError(Exception):
    """Base class for every error the API knows how to classify.

    `detail` is the client-facing text. It defaults to the message, subclasses
    that must not leak their cause override it.
    """
    kind: ErrorKind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail if detail is not None else message


# Request errors

class UnsupportedMethodError(ServiceError):
    kind = ErrorKind.UNSUPPORTED_METHOD

    def __init__(self, method: Optional[str], allowed: str):
        super().__init__(f"Unsupported HTTP method: {method}", f"Only {allowed} method is accepted.")
        self.method = method
        self.allowed = allowed


class MalformedBodyError(ServiceError):
    kind = ErrorKind.MALFORMED_BODY


class RequestValidationError(ServiceError):
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


# Upstream price provider errors

class UpstreamFetchError(ServiceError):
    kind = ErrorKind.UPSTREAM_FETCH


class PriceFetchFailed(UpstreamFetchError):
    """The price provider could not be reached or answered with an error status"""

    def __init__(self, cause: object):
        super().__init__(
            f"Failed to fetch price from CoinGecko: {cause}",
            "Failed to fetch price from CoinGecko."
        )


class PriceNotFound(UpstreamFetchError):
    """The provider answered but had no price for the id/currency pair"""

    def __init__(self, crypto_id: str, currency: str):
        super().__init__(f"Price data not found for {crypto_id} in {currency}.")
        self.crypto_id = crypto_id
        self.currency = currency


# Persistence errors

class PersistenceError(ServiceError):
    kind = ErrorKind.PERSISTENCE


class PersistenceWriteFailed(PersistenceError):
    def __init__(self, cause: object):
        super().__init__(f"Failed to store search history: {cause}", "Failed to store search history.")


class PersistenceReadFailed(PersistenceError):
    def __init__(self, cause: object):
        super().__init__(f"Failed to retrieve search history: {cause}", "Failed to retrieve search history.")


# Configuration errors

class ConfigurationError(ServiceError):
    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str):
        super().__init__(message, "Internal configuration error.")


class SecretUnavailable(ConfigurationError):
    """A secret could not be read from the parameter store"""

    def __init__(self, label: str, cause: object):
        super().__init__(f"Could not retrieve {label} from SSM: {cause}")
        self.label = label
