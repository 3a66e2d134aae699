from pydantic import BaseModel, Field
from typing import Optional

STATUS_RECEIVED = "received"
STATUS_FAILED = "failed"


class InputMessage(BaseModel):
    parcel: Optional[str] = Field(None, description="Prompt text submitted by the client")


class ExchangeRecord(BaseModel):
    prompt: str = Field(..., min_length=1)
    status: str = STATUS_RECEIVED
    created: int
    message: str
    total_tokens: int = Field(0, ge=0)


class InfoResponse(BaseModel):
    info: str
