"""
OAuth2 implementation for the Withings API.

This module provides functions for building the Withings authorization URL
and calling the Withings token endpoint for both the authorization-code and
the refresh-token grants.

Withings deviates from RFC 6749 in two ways: the token endpoint requires an
extra ``action=requesttoken`` form field, and the token fields are wrapped in
a ``{"status": ..., "body": {...}}`` envelope where status 0 means success.
"""
import logging
import urllib.parse
from typing import Dict, List, Optional, Union

import httpx
from pydantic import ValidationError

from withings_client.models.tokens import TokenResponse
from withings_client.utils.config import Settings, get_settings
from withings_client.utils.error_handling import TokenExchangeFailed
from withings_client.utils.logging_utils import redact_sensitive_data

logger = logging.getLogger(__name__)

TOKEN_ACTION = "requesttoken"
DEFAULT_AUTH_URL = "https://account.withings.com/oauth2_user/authorize2"
DEFAULT_SCOPE = "user.info,user.metrics,user.activity"


def token_url(settings: Settings) -> str:
    """Return the Withings token endpoint URL."""
    return f"{settings.withings_api_base_url}/v2/oauth2"


def build_withings_auth_url(
    client_id: str,
    redirect_uri: str,
    state: str,
    scope: Union[str, List[str]] = DEFAULT_SCOPE,
    base_url: str = DEFAULT_AUTH_URL,
) -> str:
    """
    Build an OAuth2 authorization URL for the Withings API.

    Args:
        client_id: The OAuth2 client ID
        redirect_uri: The redirect URI registered with Withings
        state: A random state parameter for CSRF protection
        scope: Scope(s) to request, as a list or a comma-separated string
        base_url: Authorization endpoint

    Returns:
        str: The complete authorization URL
    """
    # Withings expects comma-separated scopes
    if isinstance(scope, str):
        scope = [s.strip() for s in scope.split(",") if s.strip()]

    params: Dict[str, str] = {
        "response_type": "code",
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "scope": ",".join(scope),
        "state": state,
    }

    return f"{base_url}?{urllib.parse.urlencode(params)}"


def prepare_token_params(
    client_id: str,
    client_secret: str,
    grant_type: str,
    *,
    redirect_uri: Optional[str] = None,
    code: Optional[str] = None,
    refresh_token: Optional[str] = None,
) -> Dict[str, str]:
    """
    Build the form body for a token endpoint request.

    Optional fields are only included when provided.
    """
    params: Dict[str, str] = {
        "action": TOKEN_ACTION,
        "client_id": client_id,
        "client_secret": client_secret,
        "grant_type": grant_type,
    }
    if redirect_uri is not None:
        params["redirect_uri"] = redirect_uri
    if code is not None:
        params["code"] = code
    if refresh_token is not None:
        params["refresh_token"] = refresh_token
    return params


def _request_token(data: Dict[str, str], settings: Settings) -> TokenResponse:
    """POST *data* to the token endpoint and parse the Withings envelope."""
    logger.debug(f"Token request parameters: {redact_sensitive_data(data)}")
    timeout = httpx.Timeout(settings.request_timeout_seconds)
    headers = {"Accept": "application/json"}

    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.post(token_url(settings), data=data, headers=headers)
    except httpx.RequestError as e:
        logger.error(f"Network error during token request: {str(e)}")
        raise TokenExchangeFailed("network_error", f"Request failed: {str(e)}") from e

    if not response.is_success:
        logger.warning(f"Token endpoint returned HTTP {response.status_code}")
        raise TokenExchangeFailed(
            "invalid_response",
            f"Received status {response.status_code}",
            status_code=response.status_code,
            response_body=response.text,
        )

    try:
        payload = response.json()
    except ValueError as e:
        logger.error("Token endpoint returned a non-JSON body")
        raise TokenExchangeFailed(
            "invalid_response", "Response is not JSON", response.status_code, response.text
        ) from e

    if not isinstance(payload, dict):
        raise TokenExchangeFailed(
            "invalid_response", "Response is not a JSON object", response.status_code, response.text
        )

    status = payload.get("status")
    if status != 0:
        error = payload.get("error") or f"status {status}"
        logger.warning(f"Withings token request rejected: {error}")
        raise TokenExchangeFailed("withings_error", str(error), response.status_code, response.text)

    try:
        return TokenResponse.model_validate(payload)
    except ValidationError as e:
        logger.error(f"Failed to parse token response: {str(e)}")
        raise TokenExchangeFailed(
            "invalid_response", f"Failed to parse token response: {str(e)}", response.status_code
        ) from e


def exchange_code_for_tokens(
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> TokenResponse:
    """
    Exchange an authorization code for access and refresh tokens.

    Args:
        code: Authorization code from the callback
        client_id: OAuth2 client ID
        client_secret: OAuth2 client secret
        redirect_uri: Redirect URI used for authorization, defaults to the configured one
        settings: Client settings

    Returns:
        TokenResponse: The parsed token response

    Raises:
        TokenExchangeFailed: If the exchange failed for any reason
    """
    settings = settings or get_settings()
    data = prepare_token_params(
        client_id,
        client_secret,
        "authorization_code",
        redirect_uri=redirect_uri or settings.withings_redirect_uri,
        code=code,
    )
    return _request_token(data, settings)


def refresh_access_token(
    refresh_token: str,
    client_id: str,
    client_secret: str,
    settings: Optional[Settings] = None,
) -> TokenResponse:
    """
    Refresh an access token using a refresh token.

    Args:
        refresh_token: The refresh token
        client_id: OAuth2 client ID
        client_secret: OAuth2 client secret
        settings: Client settings

    Returns:
        TokenResponse: The new token pair

    Raises:
        TokenExchangeFailed: If the refresh failed for any reason
    """
    settings = settings or get_settings()
    data = prepare_token_params(
        client_id,
        client_secret,
        "refresh_token",
        refresh_token=refresh_token,
    )
    return _request_token(data, settings)
