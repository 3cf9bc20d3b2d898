"""
Search Service
Records a price lookup and emails the outcome to the requester
"""
import time
import uuid
import logging
from typing import Callable, Optional

import boto3

from models.errors import PriceFetchFailed, ServiceError
from models.search import (
    SearchRecord, FETCH_STATUS_SUCCESS, FETCH_STATUS_FAILED_PREFIX, format_price
)
from services.dynamodb_service import DynamoDBService
from services.email_service import EmailService, render_email
from services.price_service import PriceService
from services.secret_service import SecretCache
from utils.config import LookupSettings

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


class SearchService:
    """Orchestrates price fetch, persistence and notification for one lookup"""

    def __init__(
        self,
        price_service: PriceService,
        db_service: DynamoDBService,
        email_service: EmailService,
        quote_currency: str = 'usd',
        display_timezone: str = 'Australia/Sydney',
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        clock: Callable[[], int] = _now_millis
    ):
        self.price_service = price_service
        self.db_service = db_service
        self.email_service = email_service
        self.quote_currency = quote_currency
        self.display_timezone = display_timezone
        self.id_factory = id_factory
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: LookupSettings, ssm_client=None, table=None) -> 'SearchService':
        """Wire the service graph for the Lambda runtime"""
        ssm_client = ssm_client or boto3.client('ssm')
        api_key_cache = SecretCache(settings.coingecko_api_key_ssm_param_name, 'CoinGecko API key', ssm_client)
        token_cache = SecretCache(settings.mailtrap_ssm_parameter_name, 'Mailtrap token', ssm_client)

        return cls(
            price_service=PriceService(
                api_key_cache,
                base_url=settings.coingecko_base_url,
                timeout_seconds=settings.price_timeout_seconds
            ),
            db_service=DynamoDBService(settings.table_name, table=table),
            email_service=EmailService(
                token_cache,
                smtp_user=settings.mailtrap_user,
                from_email=settings.from_email,
                smtp_host=settings.smtp_host,
                smtp_port=settings.smtp_port
            ),
            quote_currency=settings.quote_currency,
            display_timezone=settings.display_timezone
        )

    def record_search_and_notify(self, crypto_id: str, recipient_email: str) -> SearchRecord:
        """
        Run one lookup end to end

        The record is stored whether or not the price fetch succeeded. Email is
        best effort. A fetch error is re-raised only after the record is stored
        and the email attempted.

        Raises:
            PersistenceWriteFailed: the record could not be stored
            UpstreamFetchError: the price could not be fetched
            ConfigurationError: the price provider key could not be loaded
        """
        search_id = self.id_factory()
        timestamp = self.clock()
        logger.info(f"Orchestrating search for {crypto_id}, ID: {search_id}, Recipient: {recipient_email}")

        price = None
        fetch_error: Optional[ServiceError] = None
        try:
            price = self.price_service.fetch_price(crypto_id, self.quote_currency)
            fetch_status = FETCH_STATUS_SUCCESS
        except ServiceError as e:
            logger.error(f"Failed to fetch price during orchestration for {crypto_id}: {e.message}")
            fetch_error = e
            fetch_status = f"{FETCH_STATUS_FAILED_PREFIX}{e.message}"
        except Exception as e:
            logger.exception(f"Unexpected error fetching price for {crypto_id}: {str(e)}")
            fetch_error = PriceFetchFailed(e)
            fetch_status = f"{FETCH_STATUS_FAILED_PREFIX}{fetch_error.message}"

        record = SearchRecord(
            searchId=search_id,
            timestamp=timestamp,
            cryptocurrencyId=crypto_id,
            queriedPrice=format_price(price) if price is not None else None,
            queriedCurrency=self.quote_currency,
            fetchStatus=fetch_status,
            recipientEmail=recipient_email
        )

        self.db_service.put_record(record)

        try:
            content = render_email(record, self.display_timezone)
            self.email_service.send_notification(search_id, content, recipient_email)
        except Exception as e:
            logger.error(f"Email process failed for {search_id}, but DB write was successful. Error: {str(e)}")

        if fetch_error is not None:
            raise fetch_error

        return record
