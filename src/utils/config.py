"""
Environment configuration for the Lambda functions.
Required variables are checked once, when a handler builds its services.
"""
import os
from typing import Optional
from pydantic import BaseModel

from models.errors import ConfigurationError


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    value = os.environ.get(key, default)
    if required and not value:
        raise ConfigurationError(f"{key} environment variable not set.")
    return value


def get_int_env(key: str, default: int) -> int:
    value = os.environ.get(key)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{key} environment variable must be an integer.") from e


class StorageSettings(BaseModel):
    table_name: str
    allowed_origin: str = '*'

    @classmethod
    def from_env(cls) -> 'StorageSettings':
        return cls(
            table_name=get_env('TABLE_NAME', required=True),
            allowed_origin=get_env('ALLOWED_ORIGIN', '*'),
        )


class LookupSettings(StorageSettings):
    mailtrap_ssm_parameter_name: str
    mailtrap_user: str
    from_email: str
    coingecko_api_key_ssm_param_name: str
    smtp_host: str = 'live.smtp.mailtrap.io'
    smtp_port: int = 587
    quote_currency: str = 'usd'
    coingecko_base_url: str = 'https://api.coingecko.com/api/v3'
    price_timeout_seconds: int = 10
    display_timezone: str = 'Australia/Sydney'

    @classmethod
    def from_env(cls) -> 'LookupSettings':
        return cls(
            table_name=get_env('TABLE_NAME', required=True),
            mailtrap_ssm_parameter_name=get_env('MAILTRAP_SSM_PARAMETER_NAME', required=True),
            mailtrap_user=get_env('MAILTRAP_USER', required=True),
            from_email=get_env('FROM_EMAIL', required=True),
            coingecko_api_key_ssm_param_name=get_env('COINGECKO_API_KEY_SSM_PARAM_NAME', required=True),
            smtp_host=get_env('SMTP_HOST', 'live.smtp.mailtrap.io'),
            smtp_port=get_int_env('SMTP_PORT', 587),
            quote_currency=get_env('QUOTE_CURRENCY', 'usd').lower(),
            coingecko_base_url=get_env('COINGECKO_BASE_URL', 'https://api.coingecko.com/api/v3'),
            price_timeout_seconds=get_int_env('PRICE_TIMEOUT_SECONDS', 10),
            display_timezone=get_env('DISPLAY_TIMEZONE', 'Australia/Sydney'),
            allowed_origin=get_env('ALLOWED_ORIGIN', '*'),
        )
