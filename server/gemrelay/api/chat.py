import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from gemrelay.api.deps import get_chat_provider
from gemrelay.core.streaming import ChatStreamRelay
from gemrelay.providers.base import ChatProvider
from gemrelay.schemas.chat import ChatRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/chat")
async def chat(
    request: ChatRequest,
    http_request: Request,
    provider: ChatProvider = Depends(get_chat_provider),
) -> Response:
    """Stream a chat completion back as NDJSON records.

    Malformed bodies are answered with 400 and an ``error`` body before the
    provider is contacted; provider failures before the first record are 500.
    """
    logger.info(
        "/api/chat start provider=%s contents=%d system=%s",
        provider.id,
        len(request.contents),
        bool(request.systemInstruction),
    )
    relay = ChatStreamRelay(provider.stream(request), request=http_request, label="/api/chat")
    return await relay.response()
