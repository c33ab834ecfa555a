from fastapi import APIRouter, Depends

from chatrelay.api.deps import get_generation_client
from chatrelay.core.errors import MethodNotAllowedError, ValidationError
from chatrelay.schemas.chat_schema import ChatRequest, ChatResponse
from chatrelay.services.ollama_client import GenerationClient
from chatrelay.utils.logger import get_logger

logger = get_logger("chatrelay.api.chat")

router = APIRouter(tags=["chat"])

_OTHER_METHODS = ["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"]


# Chat Endpoint
@router.post("/chat", response_model=ChatResponse)
async def chat(body: ChatRequest, client: GenerationClient = Depends(get_generation_client)):
    """
    Relay one message to Ollama and return its reply unchanged.
    Downstream failures surface as mapped errors; nothing is retried.
    """
    if not body.message:
        raise ValidationError("No message provided.")

    logger.info("Chat request received", extra={"message_length": len(body.message)})
    reply = await client.generate(body.message)
    return ChatResponse(reply=reply)


@router.api_route("/chat", methods=_OTHER_METHODS, include_in_schema=False)
async def chat_method_not_allowed():
    raise MethodNotAllowedError(
        allowed=["POST"],
        message="Method Not Allowed. Only POST is supported on this endpoint.",
    )
