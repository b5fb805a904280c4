from typing import List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from gemrelay.config import Settings
from gemrelay.core.form_relay import FormRelay
from gemrelay.main import create_app

FRONTEND = "https://app.example.com"
WORDPRESS = "https://wp.example.com/wp-json/contact-form-7/v1/contact-forms/42/feedback"


class FakeProvider:
    """Yields canned fragments, optionally raising after ``fail_after`` of them."""

    id = "fake"

    def __init__(self, fragments=(), fail_after: Optional[int] = None, error: Optional[Exception] = None):
        self.fragments = list(fragments)
        self.fail_after = fail_after
        self.error = error or RuntimeError("upstream exploded")
        self.requests: List = []
        self.opened = 0
        self.closed = 0

    async def stream(self, request):
        self.requests.append(request)
        self.opened += 1
        try:
            for i, fragment in enumerate(self.fragments):
                if self.fail_after == i:
                    raise self.error
                yield fragment
            if self.fail_after is not None and self.fail_after >= len(self.fragments):
                raise self.error
        finally:
            self.closed += 1


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        frontend_url=FRONTEND,
        wordpress_api_endpoint=WORDPRESS,
        gemini_api_key="test-key",
        gemini_model="gemini-test",
        gemini_api_base="https://gemini.example.com/v1beta",
    )


@pytest.fixture
def make_client(settings):
    """Build a TestClient around a fresh app with the given collaborators."""

    def _make(provider=None, upstream_handler=None, **overrides):
        cfg = settings.model_copy(update=overrides) if overrides else settings
        relay = None
        if upstream_handler is not None:
            relay = FormRelay(cfg, transport=httpx.MockTransport(upstream_handler))
        app = create_app(cfg, chat_provider=provider, form_relay=relay)
        return TestClient(app)

    return _make


CHAT_BODY = {"contents": [{"role": "user", "parts": [{"text": "Hi"}]}]}
