"""
Search history models
Field names match the attribute names stored in DynamoDB and returned by the API.
"""
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict


FETCH_STATUS_SUCCESS = 'Success'
FETCH_STATUS_FAILED_PREFIX = 'Failed: '


class SearchRecord(BaseModel):
    """Outcome of one price lookup attempt"""
    # Attributes written by other tools are kept and returned as stored
    model_config = ConfigDict(extra='allow')

    searchId: str
    timestamp: int  # epoch millis
    cryptocurrencyId: str
    queriedPrice: Optional[str] = None
    queriedCurrency: str
    fetchStatus: str
    recipientEmail: str


class EmailContent(BaseModel):
    subject: str
    html: str
    text: str


class DeliveryReceipt(BaseModel):
    message_id: str
    recipient: str
    refused: List[str] = []


def format_price(price) -> str:
    """Stringify a quoted price in positional notation, dropping a zero fractional part"""
    if isinstance(price, float):
        text = format(Decimal(repr(price)), 'f')
        if '.' in text:
            text = text.rstrip('0').rstrip('.')
        return text
    return str(price)
