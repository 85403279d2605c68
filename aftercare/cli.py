# Overview: Flask CLI command groups for database bootstrap and lifecycle maintenance.

# aftercare/cli.py
# Commands Legend:
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "aftercare:create_app".
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent). Use `flask db upgrade` in production.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Bookings:
# - python -m flask bookings audit
#   List overlapping live appointments per user. Exit code 1 when any exist.
#
# Chat:
# - python -m flask chat end-stale [--idle-minutes 120] [--dry-run]
#   End waiting/active sessions with no activity in the idle window.
#
# Feedback:
# - python -m flask feedback scores [--days 30]
#   Print NPS and CSAT for the trailing window.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import appointment_service, chat_service, feedback_service
from .time_utils import to_utc_z, trailing_window


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('bookings')
def bookings_group():
    """Appointment booking checks."""


@bookings_group.command('audit')
@with_appcontext
def audit_bookings():
    """
    Report live appointments of one user that overlap.

    Bookings go through the subject lock, so any hit here points at rows
    written outside the booking service.
    """
    clashes = appointment_service.find_overlaps()
    if not clashes:
        click.echo("PASS No overlapping appointments.")
        return

    for first, second in clashes:
        click.echo(
            f"FAIL user={first.user_id} "
            f"{first.id} [{to_utc_z(first.start_at)}, {to_utc_z(first.end_at)}) overlaps "
            f"{second.id} [{to_utc_z(second.start_at)}, {to_utc_z(second.end_at)})"
        )
    click.echo(f"{len(clashes)} overlapping pair(s) found.")
    raise SystemExit(1)


@click.group('chat')
def chat_group():
    """Live-chat maintenance commands."""


@chat_group.command('end-stale')
@click.option('--idle-minutes', type=int, default=None, help='Defaults to CHAT_STALE_AFTER_MINUTES')
@click.option('--dry-run', is_flag=True, help='List sessions without ending them')
@with_appcontext
def end_stale_sessions(idle_minutes, dry_run):
    """End chat sessions with no activity in the idle window."""
    if idle_minutes is None:
        idle_minutes = current_app.config["CHAT_STALE_AFTER_MINUTES"]

    if dry_run:
        stale = chat_service.find_stale_sessions(idle_minutes=idle_minutes)
        for session_id in stale:
            click.echo(f"STALE {session_id}")
        click.echo(f"{len(stale)} stale session(s); nothing changed (dry run).")
        return

    results = chat_service.end_stale_sessions(idle_minutes=idle_minutes)
    ended = [r.value.id for r in results if r.ok]
    for result in results:
        if not result.ok:
            click.echo(f"SKIP {result.error.kind}: {result.error.message}")
    click.echo(f"Ended {len(ended)} chat session(s) idle for more than {idle_minutes} minutes.")


@click.group('feedback')
def feedback_group():
    """Customer feedback reporting."""


@feedback_group.command('scores')
@click.option('--days', type=int, default=30, show_default=True)
@with_appcontext
def feedback_scores(days):
    """Print NPS and CSAT over the trailing window."""
    created_from, created_to = trailing_window(days)
    scores = feedback_service.feedback_scores(created_from=created_from, created_to=created_to)
    click.echo(f"Responses: {scores['responses']}")
    click.echo(f"NPS:  {scores['nps']:.2f} ({scores['nps_responses']} rated)")
    click.echo(f"CSAT: {scores['csat']:.2f}% ({scores['csat_responses']} rated)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(bookings_group)
    app.cli.add_command(chat_group)
    app.cli.add_command(feedback_group)
