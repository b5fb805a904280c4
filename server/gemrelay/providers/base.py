from __future__ import annotations
from typing import Optional, Protocol, AsyncIterator
from gemrelay.schemas.chat import ChatRequest


class UpstreamError(Exception):
    """The model provider refused or broke off a completion."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ChatProvider(Protocol):
    id: str

    def stream(self, request: ChatRequest) -> AsyncIterator[str]:
        """Yield text fragments in the order the model produces them.

        The iterator is lazy, finite and not restartable; closing it releases
        the upstream connection.
        """
        ...
