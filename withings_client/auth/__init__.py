"""Withings OAuth2 authorization and token handling."""

from withings_client.auth.callback import CallbackListener, CallbackResult
from withings_client.auth.oauth import (
    build_withings_auth_url,
    exchange_code_for_tokens,
    refresh_access_token,
)
from withings_client.auth.tokens import get_access_code, get_access_token, refresh_token
from withings_client.data.token_repository import get_config_file

__all__ = [
    "CallbackListener",
    "CallbackResult",
    "build_withings_auth_url",
    "exchange_code_for_tokens",
    "refresh_access_token",
    "get_access_code",
    "get_access_token",
    "refresh_token",
    "get_config_file",
]
