"""
Withings token lifecycle.

This module ties the OAuth2 calls to the local token file: the interactive
authorization flow for a first run, the refresh flow for later runs, and the
choice between the two.
"""
import logging
import webbrowser
from typing import Optional

from withings_client.auth.callback import CallbackListener
from withings_client.auth.oauth import (
    build_withings_auth_url,
    exchange_code_for_tokens,
    refresh_access_token,
)
from withings_client.auth.state import generate_state, states_match
from withings_client.data.token_repository import TokenRepository
from withings_client.models.tokens import TokenRecord
from withings_client.utils.config import Settings, get_settings
from withings_client.utils.error_handling import AuthorizationDenied, StateMismatch

logger = logging.getLogger(__name__)


def get_access_code(
    client_id: str,
    client_secret: str,
    settings: Optional[Settings] = None,
    *,
    open_browser: bool = True,
    timeout: Optional[float] = None,
) -> TokenRecord:
    """
    Run the interactive authorization-code flow and store the resulting tokens.

    The callback listener is bound before the authorization URL is shown so a
    busy port fails fast. The call then blocks until the browser is redirected
    back to the listener.

    Args:
        client_id: Withings client ID
        client_secret: Withings client secret
        settings: Client settings
        open_browser: Also try to open the URL in a browser
        timeout: Seconds to wait for the redirect; None waits indefinitely

    Returns:
        TokenRecord: The stored token pair

    Raises:
        ListenerBindFailed: If the callback port is unavailable
        StateMismatch: If the redirect's state does not match the one sent
        AuthorizationDenied: If the redirect carries an error or no code
        TokenExchangeFailed: If the token endpoint rejects the code
        ConfigWriteFailed: If the tokens cannot be stored
    """
    settings = settings or get_settings()
    state = generate_state()

    with CallbackListener(settings.callback_host, settings.callback_port, timeout=timeout) as listener:
        auth_url = build_withings_auth_url(
            client_id=client_id,
            redirect_uri=settings.withings_redirect_uri,
            state=state,
            scope=settings.withings_scope,
            base_url=settings.withings_auth_url,
        )
        print(f"Browse to: {auth_url}\n")
        if open_browser:
            try:
                webbrowser.open(auth_url)
            except webbrowser.Error as e:
                logger.debug(f"Could not open a browser: {e}")

        result = listener.wait_for_redirect()

    if result.error:
        raise AuthorizationDenied(f"Authorization was not granted: {result.error}")

    if not states_match(state, result.state or ""):
        logger.warning("CSRF state mismatch on OAuth2 redirect")
        raise StateMismatch("CSRF state mismatch on OAuth2 redirect")

    if not result.code:
        raise AuthorizationDenied("Authorization was not granted: no code returned")

    logger.info("Received authorization code, exchanging for tokens")
    token_response = exchange_code_for_tokens(
        code=result.code,
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=settings.withings_redirect_uri,
        settings=settings,
    )

    record = TokenRecord.from_response(token_response)
    return TokenRepository.from_settings(settings).save(record)


def refresh_token(
    client_id: str,
    client_secret: str,
    settings: Optional[Settings] = None,
) -> TokenRecord:
    """
    Refresh the stored token pair and overwrite the token file.

    Args:
        client_id: Withings client ID
        client_secret: Withings client secret
        settings: Client settings

    Returns:
        TokenRecord: The new token pair

    Raises:
        ConfigMissing: If there is no token file; no request is made
        ConfigUnreadable: If the token file cannot be parsed
        TokenExchangeFailed: If Withings rejects the refresh token
        ConfigWriteFailed: If the new pair cannot be stored
    """
    settings = settings or get_settings()
    repo = TokenRepository.from_settings(settings)
    current = repo.load()

    logger.info("Refreshing Withings access token")
    token_response = refresh_access_token(
        refresh_token=current.refresh_token,
        client_id=client_id,
        client_secret=client_secret,
        settings=settings,
    )

    record = TokenRecord.from_response(token_response)
    return repo.save(record)


def get_access_token(settings: Optional[Settings] = None, *, open_browser: bool = True) -> TokenRecord:
    """
    Return a usable token pair: refresh when a token file exists, otherwise authorize.

    Raises:
        ValueError: If the client ID or secret is not configured
    """
    settings = settings or get_settings()
    client_id = settings.withings_client_id
    client_secret = settings.client_secret_value
    if not client_id or not client_secret:
        raise ValueError("WITHINGS_CLIENT_ID and WITHINGS_CLIENT_SECRET must be set")

    if TokenRepository.from_settings(settings).exists():
        return refresh_token(client_id, client_secret, settings)
    return get_access_code(client_id, client_secret, settings, open_browser=open_browser)
