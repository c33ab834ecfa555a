from typing import Optional

from pydantic import BaseModel

from chatrelay.schemas.base import RequestModel


class ChatRequest(RequestModel):
    message: Optional[str] = None


class ChatResponse(BaseModel):
    reply: str
