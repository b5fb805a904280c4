from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple
import httpx

from gemrelay.config import Settings

logger = logging.getLogger(__name__)

ATTACHMENT_FIELD = "file-attachment"


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class RelayedResponse:
    status_code: int
    text: str


class FormRelay:
    """Forward a quote form to the WordPress Contact Form 7 endpoint unchanged."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    def build_parts(self, fields: List[Tuple[str, str]], attachment: Optional[Attachment] = None) -> List[Tuple[str, Any]]:
        # Text fields go out as filename-less parts, in their original order
        parts: List[Tuple[str, Any]] = [(key, (None, value)) for key, value in fields]
        if attachment is not None:
            parts.append((ATTACHMENT_FIELD, (attachment.filename, attachment.content, attachment.content_type)))
        return parts

    async def forward(self, fields: List[Tuple[str, str]], attachment: Optional[Attachment] = None) -> RelayedResponse:
        endpoint = self.settings.wordpress_api_endpoint
        if not endpoint:
            raise RuntimeError("WORDPRESS_API_ENDPOINT is not configured")

        timeout = httpx.Timeout(
            connect=self.settings.upstream_connect_timeout,
            read=self.settings.upstream_read_timeout,
            write=30.0,
            pool=10.0,
        )
        async with httpx.AsyncClient(timeout=timeout, trust_env=True, transport=self._transport) as client:
            resp = await client.post(endpoint, files=self.build_parts(fields, attachment))
        logger.info(
            "submit-quote relayed status=%d fields=%d attachment=%s",
            resp.status_code,
            len(fields),
            attachment is not None,
        )
        return RelayedResponse(status_code=resp.status_code, text=resp.text)
