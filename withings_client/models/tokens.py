"""Models for Withings OAuth2 tokens."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenBody(BaseModel):
    """Body of the Withings token endpoint response."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1, description="Access token for API calls")
    refresh_token: str = Field(..., min_length=1, description="Refresh token for obtaining new access tokens")
    expires_in: Optional[int] = Field(None, description="Access token lifetime in seconds")
    scope: str = Field("", description="Granted OAuth scopes")
    token_type: str = Field("Bearer", description="Token type")
    userid: Optional[str] = Field(None, description="Withings user ID")

    @field_validator("userid", mode="before")
    @classmethod
    def coerce_userid(cls, value):
        """Withings returns the user ID as either a number or a string."""
        if value is None:
            return None
        return str(value)


class TokenResponse(BaseModel):
    """
    Withings OAuth2 token endpoint response.

    Withings wraps the standard OAuth2 fields in a ``body`` object next to a
    numeric ``status`` where 0 means success.
    """

    model_config = ConfigDict(extra="ignore")

    status: int
    body: TokenBody


class TokenRecord(BaseModel):
    """Token pair persisted in the local config file."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1, description="Access token for API calls")
    refresh_token: str = Field(..., min_length=1, description="Refresh token for obtaining new access tokens")
    expires_in: Optional[int] = Field(None, description="Access token lifetime in seconds")
    scope: str = Field("", description="Granted OAuth scopes")
    userid: Optional[str] = Field(None, description="Withings user ID")
    issued_at: datetime = Field(default_factory=_utcnow, description="When the token pair was issued")

    @classmethod
    def from_response(cls, response: TokenResponse) -> "TokenRecord":
        """Build a record from a token endpoint response."""
        body = response.body
        return cls(
            access_token=body.access_token,
            refresh_token=body.refresh_token,
            expires_in=body.expires_in,
            scope=body.scope,
            userid=body.userid,
        )

    @property
    def expires_at(self) -> Optional[datetime]:
        """Calculate when the access token will expire."""
        if self.expires_in is None:
            return None
        return self.issued_at + timedelta(seconds=self.expires_in)

    def is_expired(self) -> bool:
        """Check if the access token has expired (False when the lifetime is unknown)."""
        expires_at = self.expires_at
        if expires_at is None:
            return False
        # Add a 60-second buffer to account for latency
        buffer_time = timedelta(seconds=60)
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return _utcnow() >= (expires_at - buffer_time)
