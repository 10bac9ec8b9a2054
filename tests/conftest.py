"""Global test fixtures and configuration."""

import json
import os
from unittest import mock

import pytest

from tests.builders import API_BASE_URL, TEST_CLIENT_ID, TEST_CLIENT_SECRET
from withings_client.models.tokens import TokenRecord
from withings_client.utils.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env():
    """Keep Withings variables from the developer's shell out of the tests."""
    env = {k: v for k, v in os.environ.items() if not k.upper().startswith("WITHINGS_")}
    with mock.patch.dict(os.environ, env, clear=True):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()


@pytest.fixture
def config_path(tmp_path):
    """Path of a token file inside a temporary directory (not created)."""
    return tmp_path / "config.json"


@pytest.fixture
def settings(config_path):
    """Settings pointing at a stub API and a temporary token file."""
    return Settings(
        _env_file=None,
        withings_client_id=TEST_CLIENT_ID,
        withings_client_secret=TEST_CLIENT_SECRET,
        withings_config_file=str(config_path),
        withings_api_base_url=API_BASE_URL,
        callback_host="127.0.0.1",
        callback_port=0,
    )


@pytest.fixture
def stored_tokens(config_path):
    """Write a token file holding a known pair and return it."""
    record = TokenRecord(access_token="old_access_token", refresh_token="old_refresh_token", expires_in=10800)
    config_path.write_text(json.dumps(record.model_dump(mode="json")))
    return record
