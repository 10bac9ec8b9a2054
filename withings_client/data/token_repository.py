"""File-backed repository for the Withings token pair."""

import json
import logging
import os
from typing import Optional

from pydantic import ValidationError

from withings_client.models.tokens import TokenRecord
from withings_client.utils.config import Settings, get_settings
from withings_client.utils.error_handling import ConfigMissing, ConfigUnreadable, ConfigWriteFailed

logger = logging.getLogger(__name__)


def get_config_file(settings: Optional[Settings] = None) -> str:
    """
    Resolve the path of the token config file.

    The ``WITHINGS_CONFIG_FILE`` setting overrides the default ``config.json``.
    The containing directory is not created; it must already exist.

    Args:
        settings: Client settings; loaded from the environment when omitted

    Returns:
        str: Path to the config file
    """
    settings = settings or get_settings()
    config_file = settings.withings_config_file
    logger.debug(f"Using config file: {config_file}")
    return config_file


class TokenRepository:
    """Repository for the token pair stored as a JSON file."""

    def __init__(self, path: str):
        """
        Initialize the repository.

        Args:
            path: Path of the JSON config file
        """
        self.path = path

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "TokenRepository":
        return cls(get_config_file(settings))

    def exists(self) -> bool:
        """Return True when the config file is present."""
        return os.path.isfile(self.path)

    def load(self) -> TokenRecord:
        """
        Load the stored token record.

        Returns:
            TokenRecord: The stored token pair

        Raises:
            ConfigMissing: If the file does not exist
            ConfigUnreadable: If the file cannot be read or is not a token record
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConfigMissing(self.path)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading config file {self.path}: {e}")
            raise ConfigUnreadable(self.path, str(e)) from e

        try:
            record = TokenRecord.model_validate(data)
        except ValidationError as e:
            logger.error(f"Config file {self.path} does not hold a token record")
            raise ConfigUnreadable(self.path, "not a valid token record") from e

        logger.debug(f"Loaded token record from {self.path}")
        return record

    def save(self, record: TokenRecord) -> TokenRecord:
        """
        Overwrite the config file with the given record.

        Args:
            record: The token pair to store

        The record is written to a temporary file beside the config file and
        then moved over it, so an interrupted write never leaves a partial file.

        Returns:
            TokenRecord: The stored record

        Raises:
            ConfigWriteFailed: If the file cannot be written
        """
        payload = record.model_dump(mode="json", exclude_none=True)
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error writing config file {self.path}: {e}")
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise ConfigWriteFailed(self.path, str(e)) from e
        logger.info(f"Stored token pair in {self.path}")
        return record
