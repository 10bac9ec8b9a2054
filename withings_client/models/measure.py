"""
Models for the Withings measure-getmeas endpoint.

Reference: https://developer.withings.com/api-reference/#tag/measure
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _VendorCode(int, Enum):
    """Integer enum whose string form is the numeric code Withings expects."""

    def __str__(self) -> str:
        return str(self.value)


class CategoryType(_VendorCode):
    """Enum for the ``category`` query parameter."""

    MEASURES = 1  # Real measures
    USER_OBJECTIVES = 2  # User objectives


class MeasureType(_VendorCode):
    """Enum for the ``meastype`` query parameter and ``Measure.type``."""

    WEIGHT = 1  # kg
    HEIGHT = 4  # meter
    FAT_FREE_MASS = 5  # kg
    FAT_RATIO = 6  # %
    FAT_MASS_WEIGHT = 8  # kg
    DIASTOLIC_BLOOD_PRESSURE = 9  # mmHg
    SYSTOLIC_BLOOD_PRESSURE = 10  # mmHg
    HEART_PULSE = 11  # bpm
    TEMPERATURE = 12  # celsius
    SP02 = 54  # %
    BODY_TEMPERATURE = 71  # celsius
    SKIN_TEMPERATURE = 73  # celsius
    MUSCLE_MASS = 76  # kg
    HYDRATION = 77  # kg
    BONE_MASS = 88  # kg
    PULSE_WAVE_VELOCITY = 91  # m/s
    VO2_MAX = 123  # ml/min/kg
    ATRIAL_FIBRILLATION = 130
    QRS = 135  # ms
    VASCULAR_AGE = 155  # years
    EXTRACELLULAR_WATER = 168  # kg
    INTRACELLULAR_WATER = 169  # kg
    VISCERAL_FAT_MASS = 170  # kg
    FAT_MASS = 174  # kg
    MUSCLE_MASS_SEGMENTS = 175  # kg


class Measure(BaseModel):
    """A single measure inside a measure group."""

    model_config = ConfigDict(extra="ignore")

    value: int = Field(..., description="Measure value, to be scaled by 10^unit")
    type: int = Field(..., description="Measure type code (see MeasureType)")
    unit: int = Field(..., description="Power of ten applied to value")
    algo: Optional[int] = Field(None, description="Deprecated algorithm field")
    fm: Optional[int] = Field(None, description="Deprecated field")

    @property
    def real_value(self) -> float:
        """Return ``value * 10 ** unit``."""
        return self.value * (10 ** self.unit)

    @property
    def measure_type(self) -> Optional[MeasureType]:
        """Return the known MeasureType for this measure, or None for codes not in the enum."""
        try:
            return MeasureType(self.type)
        except ValueError:
            return None


class MeasureGroup(BaseModel):
    """Measures captured together by one device at one time."""

    model_config = ConfigDict(extra="ignore")

    grpid: Optional[int] = None
    attrib: Optional[int] = None
    date: Optional[int] = Field(None, description="Unix timestamp of the measurement")
    created: Optional[int] = None
    modified: Optional[int] = None
    category: Optional[int] = None
    deviceid: Optional[str] = None
    hash_deviceid: Optional[str] = None
    model: Optional[str] = None
    modelid: Optional[int] = None
    comment: Optional[Any] = None
    measures: List[Measure] = Field(default_factory=list)

    @property
    def taken_at(self) -> Optional[datetime]:
        """Return the measurement time as an aware UTC datetime."""
        if self.date is None:
            return None
        return datetime.fromtimestamp(self.date, tz=timezone.utc)


class MeasurementsBody(BaseModel):
    """Body of a getmeas response."""

    model_config = ConfigDict(extra="ignore")

    updatetime: Optional[int] = None
    timezone: Optional[str] = None
    measuregrps: List[MeasureGroup] = Field(default_factory=list)
    more: Optional[int] = None
    offset: Optional[int] = None


class MeasurementsResponse(BaseModel):
    """Withings getmeas response."""

    model_config = ConfigDict(extra="ignore")

    status: int
    body: MeasurementsBody
