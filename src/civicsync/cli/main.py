"""Typer CLI entry point."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import orjson
import typer

from civicsync.config import Settings
from civicsync.db.client import db_cursor
from civicsync.models import REPORT_STATUSES, Queued, RejectDecision, ReportForm
from civicsync.storage.local_queue import FileLocalQueue
from civicsync.sync import ReportSubmitter, build_engine
from civicsync.utils.logging import configure_logging, get_logger
from civicsync.utils.media import is_data_uri, is_remote_url, to_data_uri


app = typer.Typer(help="Civic report submission and sync CLI")
reports_app = typer.Typer(help="Report commands")
sync_app = typer.Typer(help="Local queue synchronisation")
queue_app = typer.Typer(help="Local queue inspection")
db_app = typer.Typer(help="Database utilities")

app.add_typer(reports_app, name="reports")
app.add_typer(sync_app, name="sync")
app.add_typer(queue_app, name="queue")
app.add_typer(db_app, name="db")

logger = get_logger(__name__)


def _echo_json(payload: Any) -> None:
    typer.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8"))


@app.callback()
def main() -> None:
    """Initialize logging for all commands."""
    settings = Settings()
    configure_logging(settings.log_level)


@reports_app.command("submit")
def reports_submit(
    description: str = typer.Option(..., help="What is wrong"),
    category: str = typer.Option("Other", help="Issue category"),
    priority: str = typer.Option("medium", help="low, medium, high or urgent"),
    title: Optional[str] = typer.Option(None, help="Title (derived from description if omitted)"),
    address: str = typer.Option("", help="Manually entered address (clears coordinates)"),
    lat: Optional[float] = typer.Option(None, help="Latitude"),
    lon: Optional[float] = typer.Option(None, help="Longitude"),
    accuracy: Optional[float] = typer.Option(None, help="GPS accuracy in meters"),
    photo: Optional[List[str]] = typer.Option(None, help="Photo URL or image file path"),
    user_id: Optional[str] = typer.Option(None, help="Authenticated user id"),
) -> None:
    """Validate and submit a report, queuing it locally if the store is unreachable."""
    photos: list[str] = []
    for item in photo or []:
        if is_remote_url(item) or is_data_uri(item):
            photos.append(item)
            continue
        try:
            photos.append(to_data_uri(Path(item)))
        except OSError as exc:
            typer.echo(f"Cannot read photo {item}: {exc}", err=True)
            raise typer.Exit(2)
    form = ReportForm(
        description=description,
        title=title,
        category=category,
        priority=priority,
        latitude=lat,
        longitude=lon,
        accuracy=accuracy,
        manual_address=address,
        photos=photos,
    )
    outcome = ReportSubmitter(build_engine()).submit(form, session_user_id=user_id)

    if isinstance(outcome, RejectDecision):
        typer.echo(f"Report rejected: {outcome.reason}", err=True)
        raise typer.Exit(2)
    if isinstance(outcome, Queued):
        if not outcome.persisted:
            typer.echo("Report could not be saved remotely or locally", err=True)
            raise typer.Exit(1)
        typer.echo(f"Saved locally as {outcome.report.id}; will sync when connection is restored")
        return
    typer.echo(f"Submitted report {outcome.report.id}")


@reports_app.command("list")
def reports_list(
    user_id: Optional[str] = typer.Option(None, help="Only reports from this user"),
) -> None:
    """List reports, newest first."""
    reports = build_engine().get_user_reports(user_id)
    _echo_json([report.model_dump(mode="json") for report in reports])


@reports_app.command("nearby")
def reports_nearby(
    lat: float = typer.Option(..., help="Latitude"),
    lon: float = typer.Option(..., help="Longitude"),
    radius_km: Optional[float] = typer.Option(None, help="Radius (default from NEARBY_RADIUS_KM)"),
) -> None:
    """List reports near a point."""
    reports = build_engine().get_nearby_reports(lat, lon, radius_km)
    _echo_json([report.model_dump(mode="json") for report in reports])


@reports_app.command("set-status")
def reports_set_status(
    report_id: str = typer.Argument(..., help="Remote report id"),
    status: str = typer.Argument(..., help=f"One of: {', '.join(REPORT_STATUSES)}"),
) -> None:
    """Update the status of a synced report."""
    if status not in REPORT_STATUSES:
        typer.echo(f"Unknown status {status!r}", err=True)
        raise typer.Exit(2)
    if not build_engine().update_report_status(report_id, status):
        typer.echo(f"Status update failed for {report_id}", err=True)
        raise typer.Exit(1)
    typer.echo(f"{report_id} -> {status}")


@reports_app.command("stats")
def reports_stats(
    user_id: Optional[str] = typer.Option(None, help="Per-user stats instead of global"),
) -> None:
    """Show report counts."""
    engine = build_engine()
    stats = engine.get_user_stats(user_id) if user_id else engine.get_report_stats()
    _echo_json(stats.model_dump(mode="json"))


@sync_app.command("run")
def sync_run() -> None:
    """Push pending local reports to the remote store."""
    summary = build_engine().sync_local_reports()
    logger.info("sync.run.done attempted=%s synced=%s", summary.attempted, summary.synced)
    typer.echo(
        f"attempted={summary.attempted} synced={summary.synced} "
        f"requeued={summary.requeued} skipped={summary.skipped}"
    )


@queue_app.command("show")
def queue_show() -> None:
    """Print the local queue."""
    settings = Settings()
    reports = FileLocalQueue(settings.local_queue_path()).read()
    _echo_json([report.model_dump(mode="json") for report in reports])


@db_app.command("check")
def db_check() -> None:
    """Check database connectivity."""
    try:
        with db_cursor() as cursor:
            cursor.execute("select 1")
            logger.info("db.check.ok")
    except Exception as exc:
        logger.error("db.check.failed: %s", exc)
        typer.echo(f"Database check failed: {exc}", err=True)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
