"""Pydantic models for Withings API payloads."""

from withings_client.models.measure import (
    CategoryType,
    Measure,
    MeasureGroup,
    MeasurementsBody,
    MeasurementsResponse,
    MeasureType,
)
from withings_client.models.tokens import (
    TokenBody,
    TokenRecord,
    TokenResponse,
)

__all__ = [
    # Measurement models
    "CategoryType",
    "MeasureType",
    "Measure",
    "MeasureGroup",
    "MeasurementsBody",
    "MeasurementsResponse",

    # Token models
    "TokenBody",
    "TokenRecord",
    "TokenResponse",
]
