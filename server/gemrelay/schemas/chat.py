from __future__ import annotations
import json
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class Part(BaseModel):
    # Non-text parts (inlineData, fileData, ...) are forwarded as-is
    model_config = ConfigDict(extra="allow")

    text: Optional[str] = None


class Content(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: Optional[str] = None
    parts: List[Part] = Field(..., min_length=1)


class ChatRequest(BaseModel):
    contents: List[Content] = Field(..., min_length=1)
    systemInstruction: Optional[str] = None

    def to_upstream_payload(self) -> Dict[str, Any]:
        """Build the provider request body.

        ``systemInstruction`` is only included when a non-empty value was given.
        """
        payload: Dict[str, Any] = {
            "contents": [c.model_dump(exclude_none=True) for c in self.contents],
        }
        if self.systemInstruction:
            payload["systemInstruction"] = {"parts": [{"text": self.systemInstruction}]}
        return payload


class StreamEvent(BaseModel):
    type: Literal["chunk", "end", "error"]
    data: Optional[str] = None

    @classmethod
    def chunk(cls, text: str) -> "StreamEvent":
        return cls(type="chunk", data=text)

    @classmethod
    def end(cls) -> "StreamEvent":
        return cls(type="end")

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(type="error", data=message)

    def to_line(self) -> bytes:
        """One NDJSON record, newline terminated."""
        return (json.dumps({"type": self.type, "data": self.data}, ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")
