from __future__ import annotations
import enum
import logging
from typing import AsyncIterator, Optional, Union

from fastapi import Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from gemrelay.schemas.chat import StreamEvent

logger = logging.getLogger(__name__)

NDJSON_MEDIA_TYPE = "application/x-ndjson"
STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class StreamPhase(enum.Enum):
    NOT_STARTED = "not_started"
    STREAMING = "streaming"


def error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class ChatStreamRelay:
    """Relay upstream text fragments to one client as NDJSON.

    Failures before anything has been written become a 500 JSON response.
    Once the stream has started the status is fixed at 200, so a failure is
    reported as a final ``error`` record instead.
    """

    def __init__(
        self,
        fragments: AsyncIterator[str],
        request: Optional[Request] = None,
        label: str = "chat",
    ) -> None:
        self._fragments = fragments
        self._request = request
        self._label = label
        self._first: Optional[str] = None
        self._exhausted = False
        self.phase = StreamPhase.NOT_STARTED

    async def response(self) -> Response:
        # Pull the first fragment before committing to a 200 so that
        # connection, auth and request errors still get a real status code.
        try:
            self._first = await self._next_fragment()
        except StopAsyncIteration:
            self._exhausted = True
        except Exception as exc:
            await self._close()
            return self._on_error(exc)

        return StreamingResponse(
            self._body(),
            media_type=NDJSON_MEDIA_TYPE,
            headers=STREAM_HEADERS,
        )

    async def _body(self) -> AsyncIterator[bytes]:
        self.phase = StreamPhase.STREAMING
        count = 0
        try:
            if not self._exhausted:
                yield StreamEvent.chunk(self._first).to_line()
                count += 1
                async for fragment in self._fragments:
                    if not fragment:
                        continue
                    if await self._client_gone():
                        logger.info("%s client disconnected after %d chunks, closing upstream", self._label, count)
                        return
                    yield StreamEvent.chunk(fragment).to_line()
                    count += 1
            yield StreamEvent.end().to_line()
            logger.info("%s stream complete chunks=%d", self._label, count)
        except Exception as exc:
            yield self._on_error(exc)
        finally:
            await self._close()

    def _on_error(self, exc: Exception) -> Union[Response, bytes]:
        message = error_message(exc)
        logger.error("%s failed phase=%s: %s", self._label, self.phase.value, message, exc_info=exc)
        if self.phase is StreamPhase.NOT_STARTED:
            return JSONResponse(status_code=500, content={"error": message})
        return StreamEvent.error(message).to_line()

    async def _next_fragment(self) -> str:
        while True:
            fragment = await self._fragments.__anext__()
            if fragment:
                return fragment

    async def _client_gone(self) -> bool:
        if self._request is None:
            return False
        return await self._request.is_disconnected()

    async def _close(self) -> None:
        aclose = getattr(self._fragments, "aclose", None)
        if aclose is not None:
            await aclose()
