import logging
import threading
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from models.errors import SecretUnavailable

logger = logging.getLogger(__name__)


class SecretCache:
    """Reads one SSM parameter on first use and keeps it for the process lifetime"""

    def __init__(self, parameter_name: str, label: str, ssm_client):
        self.parameter_name = parameter_name
        self.label = label
        self.ssm_client = ssm_client
        self._value: Optional[str] = None
        self._lock = threading.Lock()

    def get_secret(self) -> str:
        """
        Return the decrypted parameter value

        Raises:
            SecretUnavailable: if the parameter store errors or returns no value
        """
        if self._value is not None:
            return self._value

        with self._lock:
            # Another caller may have filled the cell while we waited
            if self._value is None:
                self._value = self._fetch()
        return self._value

    def _fetch(self) -> str:
        logger.info(f"Fetching {self.label} from SSM parameter: {self.parameter_name}")
        try:
            response = self.ssm_client.get_parameter(Name=self.parameter_name, WithDecryption=True)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error fetching {self.label} from SSM parameter {self.parameter_name}: {str(e)}")
            raise SecretUnavailable(self.label, e) from e

        value = (response.get('Parameter') or {}).get('Value')
        if not value:
            logger.error(f"SSM parameter {self.parameter_name} returned no value")
            raise SecretUnavailable(self.label, f"Parameter value not found in SSM response for {self.label}.")

        logger.info(f"Successfully fetched and cached {self.label}.")
        return value
