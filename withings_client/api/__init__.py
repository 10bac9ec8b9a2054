"""Calls to the Withings data API endpoints."""

DEFAULT_API_BASE_URL = "https://wbsapi.withings.net"


def wapi_url(path: str, base_url: str = DEFAULT_API_BASE_URL) -> str:
    """Return the URL of a Withings API endpoint."""
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"
