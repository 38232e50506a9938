"""
CLI for generating Zoom Phone call reports
"""

import calendar
import json
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

import click

from callreport.config.settings import Settings
from callreport.monitoring.error_handler import ErrorHandler
from callreport.processing import InputError, generate_report, process_call_logs, report_to_dict
from callreport.zoom import AuthenticationError, ZoomAPIError, ZoomAuth, ZoomPhoneClient

logger = logging.getLogger(__name__)

DATE_FORMATS = ['%Y-%m-%d', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%d %H:%M:%S', '%Y-%m-%dT%H:%M:%SZ']

# The call history API serves at most six months back, one month per query
MAX_LOOKBACK_MONTHS = 6
MAX_RANGE_MONTHS = 1


def shift_months(value: datetime, months: int) -> datetime:
    """Move a datetime by whole months, clamping the day to the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_from_date(date_from: datetime, now: Optional[datetime] = None) -> datetime:
    """
    Check a report start date against the call history API limits

    Raises:
        click.BadParameter: If the date is not accepted
    """
    now = as_utc(now or datetime.now(timezone.utc))
    date_from = as_utc(date_from)

    if date_from >= now:
        raise click.BadParameter('Date must be in the past', param_hint='--from')
    if date_from <= shift_months(now, -MAX_LOOKBACK_MONTHS):
        raise click.BadParameter(
            f'Date must be within the last {MAX_LOOKBACK_MONTHS} months', param_hint='--from'
        )

    return date_from


def validate_to_date(date_from: datetime, date_to: datetime) -> datetime:
    date_from = as_utc(date_from)
    date_to = as_utc(date_to)

    if date_to <= date_from:
        raise click.BadParameter('To date must be after from date', param_hint='--to')
    if date_to >= shift_months(date_from, MAX_RANGE_MONTHS):
        raise click.BadParameter('To date must be within one month of from date', param_hint='--to')

    return date_to


def validate_date_range(
    date_from: datetime,
    date_to: datetime,
    now: Optional[datetime] = None
) -> Tuple[datetime, datetime]:
    """
    Check a report range against the call history API limits

    Raises:
        click.BadParameter: If the range is not accepted
    """
    date_from = validate_from_date(date_from, now)
    return date_from, validate_to_date(date_from, date_to)


# Option callbacks run on prompted values too, so a rejected date is asked again

def _check_from_date(ctx, param, value):
    if value is None:
        return value
    return validate_from_date(value)


def _check_to_date(ctx, param, value):
    date_from = ctx.params.get('date_from')
    if value is None or date_from is None:
        return value
    return validate_to_date(date_from, value)


def resolve_log_level(name: str) -> int:
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level

    click.echo(f"Unknown LOG_LEVEL {name}, using INFO", err=True)
    return logging.INFO


def load_settings() -> Settings:
    settings = Settings.from_env()

    missing = settings.missing_credentials()
    if missing:
        raise click.ClickException(f"Configuration not found. Set {', '.join(missing)}")

    return settings


def create_client(settings: Settings) -> ZoomPhoneClient:
    """Create and configure the Zoom Phone client"""
    auth = ZoomAuth(
        account_id=settings.zoom_account_id,
        client_id=settings.zoom_client_id,
        client_secret=settings.zoom_client_secret,
        oauth_url=settings.zoom_oauth_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries
    )

    return ZoomPhoneClient(
        auth=auth,
        api_url=settings.zoom_api_url,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        page_size=settings.call_history_page_size
    )


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose):
    """Zoom Phone call report CLI"""
    if verbose:
        log_level = logging.DEBUG
    else:
        log_level = resolve_log_level(Settings.from_env().log_level)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@cli.command()
def verify():
    """Check credentials and call log scopes"""
    settings = load_settings()

    with create_client(settings) as client:
        try:
            click.echo("Retrieving access token...", err=True)
            client.auth.get_access_token()

            click.echo("Verifying scopes...", err=True)
            client.auth.verify_scopes()
        except AuthenticationError as e:
            raise click.ClickException(str(e))

        click.echo(f"Scopes OK: {' '.join(client.auth.scopes)}")


@cli.command()
@click.option('--from', 'date_from', type=click.DateTime(formats=DATE_FORMATS),
              prompt='Enter the start date and time [from]', help='Start of the range (UTC)',
              callback=_check_from_date)
@click.option('--to', 'date_to', type=click.DateTime(formats=DATE_FORMATS),
              prompt='Enter the end date and time [to]', help='End of the range (UTC)',
              callback=_check_to_date)
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True),
              help='Write the report JSON to a file instead of stdout')
@click.option('--workers', '-w', type=click.IntRange(min=1),
              help='Concurrent call path lookups')
def report(date_from, date_to, output, workers):
    """Generate the call report for a date range"""
    date_from, date_to = validate_date_range(date_from, date_to)
    settings = load_settings()
    error_handler = ErrorHandler()

    with create_client(settings) as client:
        try:
            click.echo("Retrieving access token...", err=True)
            client.auth.get_access_token()

            click.echo("Verifying scopes...", err=True)
            client.auth.verify_scopes()

            click.echo(f"Getting call logs from {date_from:%Y-%m-%d %H:%M} to {date_to:%Y-%m-%d %H:%M}...", err=True)
            call_logs = client.get_all_call_history(date_from, date_to)

            click.echo(f"Processing {len(call_logs)} call logs...", err=True)
            processed = process_call_logs(
                call_logs,
                client.get_call_path,
                max_workers=workers or settings.call_path_max_workers,
                error_handler=error_handler
            )

            click.echo("Generating report...", err=True)
            report_batches = generate_report(processed)
            logger.debug(f"API usage: {client.get_statistics()}")

        except (ZoomAPIError, InputError) as e:
            raise click.ClickException(str(e))

    payload = json.dumps(report_to_dict(report_batches), indent=2)

    if output:
        with open(output, 'w') as f:
            f.write(payload)
        click.echo(f"Report written to {output}", err=True)
    else:
        click.echo(payload)

    if processed.resolution_errors:
        click.echo(
            f"Warning: {len(processed.resolution_errors)} outbound call(s) could not be resolved "
            f"and were reported with their original caller",
            err=True
        )
        for error in processed.resolution_errors:
            click.echo(f"  {error.call_log_id}: {error}", err=True)


if __name__ == '__main__':
    cli()
