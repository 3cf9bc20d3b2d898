from pydantic import BaseModel
from typing import Optional


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
