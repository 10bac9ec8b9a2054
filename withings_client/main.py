"""Command-line entry point for the Withings client."""

import logging
from typing import Optional

import click
from dotenv import load_dotenv

from withings_client.api.measure import MeasurementParams, get_measurements
from withings_client.auth.tokens import get_access_code, get_access_token, refresh_token
from withings_client.data.token_repository import get_config_file
from withings_client.models.measure import CategoryType, MeasurementsResponse, MeasureType
from withings_client.utils.config import Settings
from withings_client.utils.error_handling import WithingsError
from withings_client.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def _credentials(settings: Settings):
    client_id = settings.withings_client_id
    client_secret = settings.client_secret_value
    if not client_id or not client_secret:
        raise click.UsageError("WITHINGS_CLIENT_ID and WITHINGS_CLIENT_SECRET must be set")
    return client_id, client_secret


def _enum_choice(enum_cls) -> click.Choice:
    return click.Choice([member.name for member in enum_cls], case_sensitive=False)


def format_measurements(response: MeasurementsResponse) -> str:
    """Render measure groups as one line per measure."""
    lines = []
    for group in response.body.measuregrps:
        taken_at = group.taken_at.isoformat() if group.taken_at else "unknown time"
        for measure in group.measures:
            name = measure.measure_type.name if measure.measure_type else f"type {measure.type}"
            lines.append(f"{taken_at}  {name}: {measure.real_value:g}")
    return "\n".join(lines)


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
@click.pass_context
def main(ctx: click.Context, log_level: Optional[str]):
    """Authorize with Withings and fetch body measurements."""
    load_dotenv()
    settings = Settings()
    setup_logging(level=log_level or settings.log_level, fmt=settings.log_format)
    ctx.obj = settings


@main.command(name="auth")
@click.option("--no-browser", is_flag=True, help="Only print the authorization URL")
@click.pass_obj
def auth(settings: Settings, no_browser: bool):
    """Run the browser authorization flow and store the tokens."""
    client_id, client_secret = _credentials(settings)
    try:
        get_access_code(client_id, client_secret, settings, open_browser=not no_browser)
    except WithingsError as e:
        logger.error(f"Authorization failed: {e}")
        raise click.ClickException(str(e))
    click.echo(f"Tokens stored in {get_config_file(settings)}")


@main.command(name="refresh")
@click.pass_obj
def refresh(settings: Settings):
    """Refresh the stored token pair."""
    client_id, client_secret = _credentials(settings)
    try:
        refresh_token(client_id, client_secret, settings)
    except WithingsError as e:
        logger.error(f"Token refresh failed: {e}")
        raise click.ClickException(str(e))
    click.echo(f"Tokens refreshed in {get_config_file(settings)}")


@main.command(name="measurements")
@click.option("--meastype", "meastype", type=_enum_choice(MeasureType), default="WEIGHT", show_default=True)
@click.option("--category", type=_enum_choice(CategoryType), default="MEASURES", show_default=True)
@click.option("--start", type=int, default=None, help="Unix timestamp lower bound")
@click.option("--end", type=int, default=None, help="Unix timestamp upper bound")
@click.option("--offset", type=int, default=None, help="Offset returned by a previous call")
@click.option("--lastupdate", type=int, default=None, help="Only groups modified after this Unix timestamp")
@click.option("--no-browser", is_flag=True, help="Only print the authorization URL if authorization is needed")
@click.pass_obj
def measurements(
    settings: Settings,
    meastype: str,
    category: str,
    start: Optional[int],
    end: Optional[int],
    offset: Optional[int],
    lastupdate: Optional[int],
    no_browser: bool,
):
    """Fetch measurements, refreshing or authorizing first as needed."""
    client_id, _ = _credentials(settings)
    try:
        record = get_access_token(settings, open_browser=not no_browser)
        params = MeasurementParams(
            access_token=record.access_token,
            client_id=client_id,
            category=CategoryType[category.upper()],
            meastype=MeasureType[meastype.upper()],
            start=start,
            end=end,
            offset=offset,
            lastupdate=lastupdate,
        )
        response = get_measurements(params, settings)
    except WithingsError as e:
        logger.error(f"Fetching measurements failed: {e}")
        raise click.ClickException(str(e))

    output = format_measurements(response)
    click.echo(output or "No measurements found.")


if __name__ == "__main__":
    main()
