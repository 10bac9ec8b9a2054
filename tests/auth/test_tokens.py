"""Tests for the token lifecycle: authorize, refresh, and choosing between them."""
import json
from unittest import mock

import httpx
import pytest

from tests.builders import API_BASE_URL, TEST_CLIENT_ID, TEST_CLIENT_SECRET, token_payload
from withings_client.auth.callback import CallbackResult
from withings_client.auth.tokens import get_access_code, get_access_token, refresh_token
from withings_client.models.tokens import TokenRecord
from withings_client.utils.error_handling import (
    AuthorizationDenied,
    ConfigMissing,
    ConfigUnreadable,
    ListenerBindFailed,
    StateMismatch,
    TokenExchangeFailed,
)

TOKEN_URL = f"{API_BASE_URL}/v2/oauth2"
TEST_STATE = "fixed_state_value_for_tests_0001"


@pytest.fixture
def fixed_state():
    with mock.patch("withings_client.auth.tokens.generate_state", return_value=TEST_STATE):
        yield TEST_STATE


@pytest.fixture
def mock_listener():
    """Replace the callback listener with one that returns a canned redirect."""
    with mock.patch("withings_client.auth.tokens.CallbackListener") as listener_cls:
        listener = mock.MagicMock()
        listener.wait_for_redirect.return_value = CallbackResult(code="test_auth_code", state=TEST_STATE)
        listener_cls.return_value.__enter__.return_value = listener
        yield listener_cls, listener


class TestGetAccessCode:
    """Tests for the interactive authorization flow."""

    def test_success_stores_tokens(self, settings, config_path, fixed_state, mock_listener, respx_mock, capsys):
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=token_payload()))

        record = get_access_code(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings, open_browser=False)

        assert isinstance(record, TokenRecord)
        assert record.access_token == "new_access_token"
        assert record.refresh_token == "new_refresh_token"

        data = json.loads(config_path.read_text())
        assert data["access_token"] == record.access_token
        assert data["refresh_token"] == record.refresh_token

        # The authorization URL is shown to the user
        out = capsys.readouterr().out
        assert "Browse to: https://account.withings.com/oauth2_user/authorize2?" in out
        assert f"state={TEST_STATE}" in out

    def test_listener_uses_configured_address(self, settings, fixed_state, mock_listener, respx_mock):
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=token_payload()))
        listener_cls, listener = mock_listener

        get_access_code(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings, open_browser=False)

        listener_cls.assert_called_once_with(settings.callback_host, settings.callback_port, timeout=None)
        listener_cls.return_value.__exit__.assert_called_once()
        listener.wait_for_redirect.assert_called_once()

    def test_opens_browser(self, settings, fixed_state, mock_listener, respx_mock):
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=token_payload()))

        with mock.patch("withings_client.auth.tokens.webbrowser.open") as mock_open:
            get_access_code(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings)

        mock_open.assert_called_once()
        assert mock_open.call_args.args[0].startswith(settings.withings_auth_url)

    def test_state_mismatch(self, settings, config_path, fixed_state, mock_listener, respx_mock):
        _, listener = mock_listener
        listener.wait_for_redirect.return_value = CallbackResult(code="test_auth_code", state="forged")

        with pytest.raises(StateMismatch):
            get_access_code(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings, open_browser=False)

        assert not respx_mock.calls
        assert not config_path.exists()

    def test_access_denied(self, settings, config_path, fixed_state, mock_listener, respx_mock):
        _, listener = mock_listener
        listener.wait_for_redirect.return_value = CallbackResult(error="access_denied", state=TEST_STATE)

        with pytest.raises(AuthorizationDenied) as exc_info:
            get_access_code(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings, open_browser=False)

        assert "access_denied" in str(exc_info.value)
        assert not respx_mock.calls
        assert not config_path.exists()

    def test_access_denied_without_state(self, settings, config_path, fixed_state, mock_listener, respx_mock):
        _, listener = mock_listener
        listener.wait_for_redirect.return_value = CallbackResult(error="access_denied")

        with pytest.raises(AuthorizationDenied) as exc_info:
            get_access_code(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings, open_browser=False)

        assert "access_denied" in str(exc_info.value)
        assert not respx_mock.calls

    def test_exchange_failure_leaves_no_file(self, settings, config_path, fixed_state, mock_listener, respx_mock):
        respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(400, json={"error": "invalid_grant"}))

        with pytest.raises(TokenExchangeFailed):
            get_access_code(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings, open_browser=False)

        assert not config_path.exists()

    def test_bind_failure_is_raised_before_prompting(self, settings, fixed_state, capsys):
        with mock.patch("withings_client.auth.tokens.CallbackListener") as listener_cls:
            listener_cls.return_value.__enter__.side_effect = ListenerBindFailed("127.0.0.1", 8888, "in use")
            with pytest.raises(ListenerBindFailed):
                get_access_code(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings, open_browser=False)

        assert "Browse to" not in capsys.readouterr().out


class TestRefreshToken:
    """Tests for refreshing the stored token pair."""

    def test_refresh_rotates_tokens(self, settings, config_path, stored_tokens, respx_mock):
        route = respx_mock.post(TOKEN_URL).mock(return_value=httpx.Response(200, json=token_payload()))

        record = refresh_token(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings)

        assert record.access_token == "new_access_token"
        data = json.loads(config_path.read_text())
        assert data["refresh_token"] == "new_refresh_token"
        assert data["refresh_token"] != stored_tokens.refresh_token
        assert "refresh_token=old_refresh_token" in route.calls.last.request.content.decode()

    def test_missing_config_makes_no_request(self, settings, respx_mock):
        with pytest.raises(ConfigMissing):
            refresh_token(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings)

        assert not respx_mock.calls

    def test_unreadable_config(self, settings, config_path):
        config_path.write_text("not json")

        with pytest.raises(ConfigUnreadable):
            refresh_token(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings)

    def test_rejected_refresh_keeps_old_file(self, settings, config_path, stored_tokens, respx_mock):
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"status": 401, "body": {}, "error": "invalid refresh token"})
        )

        with pytest.raises(TokenExchangeFailed):
            refresh_token(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings)

        data = json.loads(config_path.read_text())
        assert data["refresh_token"] == stored_tokens.refresh_token


class TestGetAccessToken:
    """Tests for choosing between refresh and authorization."""

    def test_refreshes_when_config_exists(self, settings, stored_tokens):
        with mock.patch("withings_client.auth.tokens.refresh_token") as mock_refresh, \
                mock.patch("withings_client.auth.tokens.get_access_code") as mock_authorize:
            get_access_token(settings)

        mock_refresh.assert_called_once_with(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings)
        mock_authorize.assert_not_called()

    def test_authorizes_when_config_is_missing(self, settings):
        with mock.patch("withings_client.auth.tokens.refresh_token") as mock_refresh, \
                mock.patch("withings_client.auth.tokens.get_access_code") as mock_authorize:
            get_access_token(settings, open_browser=False)

        mock_authorize.assert_called_once_with(TEST_CLIENT_ID, TEST_CLIENT_SECRET, settings, open_browser=False)
        mock_refresh.assert_not_called()

    def test_requires_credentials(self, settings):
        settings.withings_client_secret = None
        with pytest.raises(ValueError):
            get_access_token(settings)
