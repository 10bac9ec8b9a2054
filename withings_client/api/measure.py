"""
Client for the Withings measure-getmeas endpoint.

Reference: https://developer.withings.com/api-reference/#tag/measure
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

import httpx
from pydantic import ValidationError

from withings_client.api import wapi_url
from withings_client.models.measure import CategoryType, MeasurementsResponse, MeasureType
from withings_client.utils.config import Settings, get_settings
from withings_client.utils.error_handling import DecodeFailure, HttpFailure
from withings_client.utils.logging_utils import redact_sensitive_data

logger = logging.getLogger(__name__)

GETMEAS_ACTION = "getmeas"

# Optional query fields, keyed by attribute name
_OPTIONAL_FIELDS = {
    "start": "startdate",
    "end": "enddate",
    "offset": "offset",
    "lastupdate": "lastupdate",
}


@dataclass
class MeasurementParams:
    """Parameters for one getmeas request."""

    access_token: str
    client_id: str
    category: Union[CategoryType, str]
    meastype: Union[MeasureType, str]
    start: Optional[Union[int, str]] = None
    end: Optional[Union[int, str]] = None
    offset: Optional[Union[int, str]] = None
    lastupdate: Optional[Union[int, str]] = None

    def to_query_params(self) -> Dict[str, str]:
        """Return the query string parameters, omitting optional fields that are not set."""
        params = {
            "client_id": self.client_id,
            "action": GETMEAS_ACTION,
            "access_token": self.access_token,
            "meastype": str(self.meastype),
            "category": str(self.category),
        }
        for attr, name in _OPTIONAL_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                params[name] = str(value)
        return params


def get_measurements(
    params: MeasurementParams,
    settings: Optional[Settings] = None,
    client: Optional[httpx.Client] = None,
) -> MeasurementsResponse:
    """
    Retrieve measurements from the Withings API.

    Exactly one request is made; there is no retry and no pagination.

    Args:
        params: Query parameters
        settings: Client settings
        client: Optional HTTP client to send the request with

    Returns:
        MeasurementsResponse: The parsed response

    Raises:
        HttpFailure: On transport errors, non-2xx responses or a non-zero Withings status
        DecodeFailure: If the body is not JSON or does not match the response schema
    """
    settings = settings or get_settings()
    query_params = params.to_query_params()
    url = wapi_url("measure", settings.withings_api_base_url)
    logger.debug(f"Measure API query parameters: {redact_sensitive_data(query_params)}")

    try:
        if client is None:
            with httpx.Client(timeout=httpx.Timeout(settings.request_timeout_seconds)) as own_client:
                response = own_client.get(url, params=query_params)
        else:
            response = client.get(url, params=query_params)
    except httpx.RequestError as exc:
        logger.error(f"Measure API request failed: {exc}")
        raise HttpFailure("Request failed") from exc

    if not response.is_success:
        logger.warning(f"Error response from the Measure API: {response.status_code}")
        raise HttpFailure(
            f"API returned an error: {response.status_code}",
            status_code=response.status_code,
            response_body=response.text,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        logger.warning("Measure API returned a non-JSON body")
        raise DecodeFailure(
            "Response is not JSON", status_code=response.status_code, response_body=response.text
        ) from exc

    if isinstance(payload, dict) and payload.get("status", 0) != 0:
        error = payload.get("error") or f"status {payload.get('status')}"
        logger.warning(f"Withings Measure API error: {error}")
        raise HttpFailure(
            f"Withings API error: {error}",
            status_code=response.status_code,
            response_body=response.text,
        )

    try:
        measurements = MeasurementsResponse.model_validate(payload)
    except ValidationError as exc:
        logger.warning(f"Failed to parse Measure API response: {exc}")
        raise DecodeFailure(
            "Response does not match the getmeas schema",
            status_code=response.status_code,
            response_body=response.text,
        ) from exc

    logger.info(f"Fetched {len(measurements.body.measuregrps)} measure groups")
    return measurements
