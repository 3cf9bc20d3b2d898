import boto3
import logging
from typing import Dict, List, Any
from decimal import Decimal

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from models.errors import PersistenceReadFailed, PersistenceWriteFailed
from models.search import SearchRecord

logger = logging.getLogger(__name__)


class DynamoDBService:
    """Search history table access

    `table` is anything with boto3 Table's `put_item` and `scan` signatures.
    """

    def __init__(self, table_name: str, table=None):
        self.table_name = table_name
        if table is None:
            table = boto3.resource('dynamodb').Table(table_name)
        self.table = table

    def _deserialize_value(self, value: Any) -> Any:
        """Convert Decimals back to ints or floats"""
        if isinstance(value, Decimal):
            return int(value) if value == value.to_integral_value() else float(value)
        if isinstance(value, dict):
            return {key: self._deserialize_value(v) for key, v in value.items()}
        if isinstance(value, (list, set)):
            # String and number sets come back as python sets
            values = [self._deserialize_value(v) for v in value]
            return sorted(values) if isinstance(value, set) else values
        return value

    def _deserialize_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        return {key: self._deserialize_value(value) for key, value in item.items()}

    def put_record(self, record: SearchRecord) -> SearchRecord:
        """Store a search record

        Raises:
            PersistenceWriteFailed: on any store error
        """
        logger.info(f"Storing search {record.searchId} to DynamoDB...")
        try:
            self.table.put_item(Item=record.model_dump())
        except (ClientError, BotoCoreError) as e:
            logger.error(f"DB Put Error for {record.searchId}: {str(e)}")
            raise PersistenceWriteFailed(e) from e
        logger.info(f"Stored search {record.searchId} successfully.")
        return record

    def scan_by_email(self, email: str) -> List[SearchRecord]:
        """
        Get every stored search for a recipient address

        Follows LastEvaluatedKey until the scan is exhausted, so callers always
        receive the full result in page order.

        Raises:
            PersistenceReadFailed: on any store error; pages read so far are dropped
        """
        scan_params = {
            'FilterExpression': 'recipientEmail = :email',
            'ExpressionAttributeValues': {
                ':email': email
            }
        }
        items = []
        pages = 0

        try:
            while True:
                response = self.table.scan(**scan_params)
                pages += 1
                items.extend(response.get('Items', []))

                if 'LastEvaluatedKey' not in response:
                    break
                scan_params['ExclusiveStartKey'] = response['LastEvaluatedKey']
        except (ClientError, BotoCoreError) as e:
            logger.error(f"DynamoDB Scan Error for {email}: {str(e)}")
            raise PersistenceReadFailed(e) from e

        logger.info(f"Scan found {len(items)} items for {email} across {pages} page(s)")
        try:
            return [SearchRecord(**self._deserialize_item(item)) for item in items]
        except ValidationError as e:
            logger.error(f"Stored search history for {email} is malformed: {str(e)}")
            raise PersistenceReadFailed(e) from e
