import requests
import logging
from typing import Optional

from models.errors import PriceFetchFailed, PriceNotFound
from services.secret_service import SecretCache

logger = logging.getLogger(__name__)


class PriceService:
    """Current price lookups against the CoinGecko simple price endpoint"""

    def __init__(
        self,
        api_key_cache: SecretCache,
        base_url: str = "https://api.coingecko.com/api/v3",
        timeout_seconds: int = 10,
        session: Optional[requests.Session] = None
    ):
        self.api_key_cache = api_key_cache
        self.coingecko_base_url = base_url.rstrip('/')
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def fetch_price(self, crypto_id: str, currency: str = 'usd') -> float:
        """
        Get the current price of one coin

        Args:
            crypto_id: CoinGecko coin id as submitted, e.g. 'Bitcoin'
            currency: quote currency code, e.g. 'usd'

        Returns:
            The price as returned by CoinGecko

        Raises:
            PriceFetchFailed: transport error or error status from CoinGecko
            PriceNotFound: response has no price for the id/currency pair
            SecretUnavailable: the API key could not be loaded
        """
        lookup_id = crypto_id.lower()
        logger.info(f"Fetching price for {crypto_id} (lookup: {lookup_id}) in {currency} from CoinGecko...")

        api_key = self.api_key_cache.get_secret()
        url = f"{self.coingecko_base_url}/simple/price"
        params = {
            'ids': lookup_id,
            'vs_currencies': currency
        }
        headers = {
            'accept': 'application/json',
            'x-cg-demo-api-key': api_key
        }

        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout_seconds)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"CoinGecko API error fetching price for {crypto_id}: {str(e)}")
            if e.response is not None:
                logger.error(f"Error status: {e.response.status_code}, body: {e.response.text[:200]}")
            raise PriceFetchFailed(e) from e
        except ValueError as e:
            logger.error(f"CoinGecko returned a non-JSON payload for {crypto_id}: {str(e)}")
            raise PriceFetchFailed(e) from e

        price = None
        entry = data.get(lookup_id) if isinstance(data, dict) else None
        if isinstance(entry, dict):
            price = entry.get(currency)

        if price is None:
            logger.warning(
                f"Price data not found for {crypto_id} in {currency} within CoinGecko response (lookup key: {lookup_id})."
            )
            raise PriceNotFound(crypto_id, currency)

        logger.info(f"Successfully fetched price for {crypto_id}: {price} {currency}")
        return price
