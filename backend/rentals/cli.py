# Overview: Flask CLI command groups for bootstrap, availability queries, and mirror sync.

# backend/rentals/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to "rentals" (PowerShell: $env:FLASK_APP="rentals").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/maintenance:
# - python -m flask system init
#   Create the record_collections table and the default admin (idempotent).
# - python -m flask system clear-catalog --yes
#   Delete every item (writes one DELETE_ALL audit entry).
# - python -m flask system clear-orders --yes
#   Delete every order (writes one DELETE_ALL audit entry).
#
# Availability:
# - python -m flask items availability CAD-001 --start 2024-01-02 --end 2024-01-02
#   Free units of one item (by id or code) over an inclusive date range.
# - python -m flask items available --start 2024-01-02 --end 2024-01-04
#   Every item with at least one free unit over the range.
#
# Mirror sync (requires MIRROR_URL):
# - python -m flask sync pull
#   Download non-empty remote collections into the local store.
# - python -m flask sync push
#   Push every local collection to the mirror.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services.user_service import SYSTEM_ACTOR


def _services():
    return current_app.extensions["rentals"]


def _admin_actor():
    """The bootstrap admin, falling back to the system actor before init."""
    admin = _services().users.get_by_email(current_app.config["DEFAULT_ADMIN_EMAIL"])
    return admin or SYSTEM_ACTOR


@click.group('system')
def system_group():
    """System bootstrap and maintenance commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the rentals backend.

    Creates:
    - record_collections table (if missing)
    - Default admin user from DEFAULT_ADMIN_EMAIL / DEFAULT_ADMIN_PASSWORD

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing rentals system...")
    db.create_all()
    click.echo("PASS Record store table ready")

    email = current_app.config["DEFAULT_ADMIN_EMAIL"]
    existing = _services().users.get_by_email(email)
    admin = _services().users.ensure_default_admin(email, current_app.config["DEFAULT_ADMIN_PASSWORD"])
    if existing is not None:
        click.echo(f"WARN  User '{email}' already exists, skipping...")
    else:
        click.echo(f"PASS Created admin: {admin.email} (ID: {admin.id})")


@system_group.command('clear-catalog')
@click.option('--yes', is_flag=True, help='Confirm deleting every item')
@with_appcontext
def clear_catalog(yes):
    """Delete every item in the catalog."""
    if not yes:
        click.echo("FAIL Refusing to clear the catalog without --yes")
        raise SystemExit(1)
    removed = _services().system.clear_catalog(_admin_actor())
    click.echo(f"PASS Removed {removed} item(s)")


@system_group.command('clear-orders')
@click.option('--yes', is_flag=True, help='Confirm deleting every order')
@with_appcontext
def clear_orders(yes):
    """Delete every order."""
    if not yes:
        click.echo("FAIL Refusing to clear orders without --yes")
        raise SystemExit(1)
    removed = _services().system.clear_orders(_admin_actor())
    click.echo(f"PASS Removed {removed} order(s)")


@click.group('items')
def items_group():
    """Item availability queries."""


@items_group.command('availability')
@click.argument('item_ref')
@click.option('--start', required=True, help='Range start (ISO date)')
@click.option('--end', required=True, help='Range end (ISO date, inclusive)')
@with_appcontext
def item_availability(item_ref, start, end):
    """Free units of ITEM_REF (item id or code) over [start, end]."""
    items = _services().items
    item = items.get_by_id(item_ref) or items.get_by_code(item_ref)
    if item is None:
        click.echo(f"FAIL Item not found: {item_ref}")
        raise SystemExit(1)
    try:
        available = items.get_availability(item.id, start, end)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"{item.code} {item.name}: {available} of {item.quantity_total} available")


@items_group.command('available')
@click.option('--start', required=True, help='Range start (ISO date)')
@click.option('--end', required=True, help='Range end (ISO date, inclusive)')
@with_appcontext
def items_available(start, end):
    """List every item with at least one free unit over [start, end]."""
    services = _services()
    try:
        available = services.items.get_available(start, end)
        counts = services.availability.availability_map(start, end)
    except ValueError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    if not available:
        click.echo("No items available")
        return
    for item in available:
        click.echo(f"{item.code:<10} {item.name:<30} {counts.get(item.id, 0):>5}")


@click.group('sync')
def sync_group():
    """Manual replication against the remote mirror."""


def _mirror():
    from .services.replication_service import HttpDocumentMirror

    url = current_app.config.get("MIRROR_URL")
    if not url:
        click.echo("FAIL MIRROR_URL is not configured")
        raise SystemExit(1)
    return HttpDocumentMirror(
        url,
        timeout=current_app.config["MIRROR_TIMEOUT_SECONDS"],
        batch_size=current_app.config["MIRROR_BATCH_SIZE"],
    )


@sync_group.command('pull')
@with_appcontext
def sync_pull():
    """Download remote collections; empty remote collections never wipe local data."""
    from . import SYNCED_COLLECTIONS
    from .services.replication_service import pull_into

    mirror = _mirror()
    try:
        results = pull_into(_services().store, mirror, SYNCED_COLLECTIONS)
    finally:
        mirror.close()
    for collection, count in results.items():
        click.echo(f"{collection:<12} {count} pulled")


@sync_group.command('push')
@with_appcontext
def sync_push():
    """Push every local collection to the mirror."""
    from .services.replication_service import push_all

    mirror = _mirror()
    try:
        results = push_all(_services().store, mirror)
    finally:
        mirror.close()

    failed = [c for c, count in results.items() if count < 0]
    for collection, count in results.items():
        status = "FAIL" if count < 0 else "PASS"
        click.echo(f"{status} {collection:<12} {max(count, 0)} pushed")
    if failed:
        raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(items_group)
    app.cli.add_command(sync_group)
