"""Minimal client for the Withings API: OAuth2 authorization and body measurements."""

from withings_client.api.measure import MeasurementParams, get_measurements
from withings_client.auth import get_access_code, get_access_token, get_config_file, refresh_token
from withings_client.models import CategoryType, MeasurementsResponse, MeasureType, TokenRecord

__version__ = "0.1.0"

__all__ = [
    "CategoryType",
    "MeasureType",
    "MeasurementParams",
    "MeasurementsResponse",
    "TokenRecord",
    "get_access_code",
    "get_access_token",
    "get_config_file",
    "get_measurements",
    "refresh_token",
]
