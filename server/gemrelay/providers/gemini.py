from __future__ import annotations
import json
import logging
from typing import AsyncIterator, Any, Dict, List, Optional
import httpx

from gemrelay.config import Settings
from gemrelay.providers.base import UpstreamError
from gemrelay.schemas.chat import ChatRequest

logger = logging.getLogger(__name__)

# Finish reasons that mean the candidate text was withheld
BLOCKING_FINISH_REASONS = {"SAFETY", "RECITATION", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII"}


def _error_message(resp: httpx.Response, body: bytes) -> str:
    detail = body.decode("utf-8", errors="ignore").strip()
    try:
        obj = json.loads(detail)
        if isinstance(obj, list) and obj:
            obj = obj[0]
        detail = obj.get("error", {}).get("message") or detail
    except (ValueError, AttributeError):
        pass
    prefix = f"[{resp.status_code} {resp.reason_phrase}]".replace(" ]", "]")
    return f"{prefix} {detail}" if detail else prefix


def extract_text(obj: Dict[str, Any]) -> str:
    """Return the text carried by one streamed GenerateContentResponse.

    Raises UpstreamError when the provider reports an error or blocked output.
    """
    if "error" in obj:
        err = obj.get("error")
        if not isinstance(err, dict):
            raise UpstreamError(str(err) if err else "Gemini reported an error")
        raise UpstreamError(err.get("message") or "Gemini reported an error", err.get("code"))

    block_reason = (obj.get("promptFeedback") or {}).get("blockReason")
    if block_reason:
        raise UpstreamError(f"Text not available. Response was blocked due to {block_reason}")

    candidates: List[Dict[str, Any]] = obj.get("candidates") or []
    if not candidates:
        return ""
    candidate = candidates[0]
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    finish_reason = candidate.get("finishReason")
    if not text and finish_reason in BLOCKING_FINISH_REASONS:
        raise UpstreamError(f"Candidate was blocked due to {finish_reason}")
    return text


class GeminiProvider:
    id = "gemini"

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    @property
    def url(self) -> str:
        base = self.settings.gemini_api_base.rstrip("/")
        return f"{base}/models/{self.settings.gemini_model}:streamGenerateContent"

    async def stream(self, request: ChatRequest) -> AsyncIterator[str]:
        api_key = self.settings.gemini_api_key
        if not api_key:
            raise UpstreamError("GEMINI_API_KEY is not configured")

        payload = request.to_upstream_payload()
        headers = {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        timeout = httpx.Timeout(
            connect=self.settings.upstream_connect_timeout,
            read=self.settings.upstream_read_timeout,
            write=30.0,
            pool=10.0,
        )

        # One client and one response per call; both are closed when the
        # generator finishes, raises or is closed by the consumer.
        async with httpx.AsyncClient(timeout=timeout, trust_env=True, transport=self._transport) as client:
            async with client.stream(
                "POST",
                self.url,
                params={"alt": "sse"},
                headers=headers,
                json=payload,
            ) as resp:
                if resp.is_error:
                    body = await resp.aread()
                    raise UpstreamError(_error_message(resp, body), resp.status_code)

                async for line in resp.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if not data:
                        continue
                    try:
                        obj = json.loads(data)
                    except ValueError as e:
                        raise UpstreamError(f"Malformed chunk from Gemini: {e}") from e
                    text = extract_text(obj)
                    if text:
                        yield text
        logger.debug("gemini stream closed model=%s", self.settings.gemini_model)
