# Overview: Flask CLI command groups for bootstrap, Kara synchronization and store settings.

# backend/storefront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to storefront (PowerShell: $env:FLASK_APP="storefront").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: seeds default system_settings rows and the order-number counter.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Kara synchronization:
# - python -m flask sync run [--type full|incremental|categories|brands|products|prices|inventory] [--since 2026-01-01T00:00:00Z]
#   Pull from Kara and reconcile into the local catalog; one sync_logs row per entity type.
# - python -m flask sync logs [--limit 20] [--entity-type products]
#   Show recent sync log rows.
# - python -m flask sync health
#   Probe the Kara health endpoint.
#
# Store settings:
# - python -m flask settings list
#   Show system_settings rows.
# - python -m flask settings set tax_rate 0.1
#   Upsert a setting (value parsed as JSON when possible); pricing keys take effect immediately.

import json

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import settings_service, sync_service
from .services.kara_client import get_kara_client
from .services.sequence_service import ensure_sequence
from .validation import StorefrontError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Seed defaults needed before the first checkout.

    Creates (only when missing):
    - system_settings: tax_rate, free_shipping_threshold, b2b/b2c minimum order,
      bulk discount threshold and rate
    - order_sequences row for MT-YYYYMMDD-NNNN order numbers
    """
    click.echo("START Initializing storefront...")
    created = settings_service.seed_default_settings()
    click.echo(f"PASS Settings seeded: {created} new")
    seq = ensure_sequence()
    click.echo(f"PASS Order sequence ready (next number {seq.next_number})")
    click.echo("DONE Storefront initialized. Run 'python -m flask sync run' to import the catalog.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('sync')
def sync_group():
    """Kara catalog synchronization."""


@sync_group.command('run')
@click.option('--type', 'sync_type', default='full', type=click.Choice(sync_service.SYNC_TYPES), help='What to sync')
@click.option('--since', default=None, help='ISO-8601 lower bound for updated records')
@with_appcontext
def run_sync(sync_type, since):
    """Run one synchronization and print per-entity results."""
    click.echo(f"START {sync_type} sync...")
    try:
        run = sync_service.run_sync(get_kara_client(), sync_type, since=since)
    except (StorefrontError, ValueError) as e:
        raise click.ClickException(str(e))

    for result in run.results:
        line = (
            f"{result.entity_type:<11} {result.status:<8} "
            f"created={result.created} updated={result.updated} failed={result.failed}"
        )
        if result.fetch_error:
            line += f" ({result.fetch_error})"
        click.echo(line)
        for error in result.errors[:10]:
            click.echo(f"    - {error['record']}: {error['error']}")

    click.echo(f"DONE {run.status}")
    if run.status == "error":
        raise SystemExit(1)


@sync_group.command('logs')
@click.option('--limit', default=20, show_default=True, help='Rows to show')
@click.option('--entity-type', default=None, help='Filter by entity type')
@with_appcontext
def sync_logs(limit, entity_type):
    """Show recent sync log rows, newest first."""
    logs = sync_service.list_sync_logs(limit=limit, entity_type=entity_type)
    if not logs:
        click.echo("No sync logs yet.")
        return
    for log in logs:
        click.echo(
            f"{log.id:>5} {log.started_at:%Y-%m-%d %H:%M:%S} {log.sync_type:<11} {log.entity_type:<11} "
            f"{log.status:<8} processed={log.records_processed} failed={log.records_failed}"
        )


@sync_group.command('health')
@with_appcontext
def kara_health():
    """Probe the Kara health endpoint."""
    health = get_kara_client().health_check()
    status = "PASS" if health["success"] else "FAIL"
    click.echo(f"{status} {health['message']} (version {health['version']})")
    if not health["success"]:
        raise SystemExit(1)


@click.group('settings')
def settings_group():
    """Store-wide settings (system_settings)."""


@settings_group.command('list')
@with_appcontext
def list_settings():
    for row in settings_service.list_settings():
        visibility = "public" if row["is_public"] else "private"
        click.echo(f"{row['key']:<26} {json.dumps(row['value_json'], ensure_ascii=False):<12} {visibility}")


@settings_group.command('set')
@click.argument('key')
@click.argument('value')
@click.option('--public/--private', default=None, help='Expose the value to shoppers')
@with_appcontext
def set_setting(key, value, public):
    """Upsert KEY to VALUE (JSON if it parses, otherwise a string)."""
    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = value
    try:
        row = settings_service.set_setting(key, parsed, is_public=public)
    except StorefrontError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS {row.key} = {json.dumps(row.value_json, ensure_ascii=False)}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(sync_group)
    app.cli.add_command(settings_group)
