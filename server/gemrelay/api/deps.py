from fastapi import Request

from gemrelay.config import Settings
from gemrelay.core.form_relay import FormRelay
from gemrelay.providers.base import ChatProvider


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_chat_provider(request: Request) -> ChatProvider:
    return request.app.state.chat_provider


def get_form_relay(request: Request) -> FormRelay:
    return request.app.state.form_relay
