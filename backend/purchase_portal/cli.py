# Overview: Flask CLI command groups for catalog seeding, reminders and staff inspection.

# backend/purchase_portal/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Apply migrations first: python -m flask db upgrade
#
# Product catalog:
# - python -m flask products seed
#   Insert the built-in product list, skipping names already present.
#
# Reminders:
# - python -m flask reminders run
#   Run the daily reminder sweep once (use this from an external cron).
#
# Staff accounts:
# - python -m flask staff list
#   List staff accounts with role and last login.
# - python -m flask staff set-role <uid> <role>
#   Set a role directly (admin, staff, representative). Emails the user.

import click
from flask import current_app
from flask.cli import with_appcontext

from .services.products_service import seed_products
from .validation import NotFoundError, ValidationError


@click.group('products')
def products_group():
    """Product catalog commands."""


@products_group.command('seed')
@with_appcontext
def seed_products_cli():
    """Insert the default product list."""
    created = seed_products()
    click.echo(f"PASS Seeded {created} product(s)")


@click.group('reminders')
def reminders_group():
    """Reminder sweep commands."""


@reminders_group.command('run')
@with_appcontext
def run_reminders_cli():
    """Run the reminder sweep once."""
    summary = current_app.extensions["reminders"].run()
    click.echo(
        f"PASS Reminder sweep: {summary.pending} pending, {summary.sent} sent, "
        f"{summary.skipped} skipped, {summary.failed} failed"
    )


@click.group('staff')
def staff_group():
    """Staff account inspection commands."""


@staff_group.command('list')
@with_appcontext
def list_staff_cli():
    """List all staff accounts."""
    staff = current_app.extensions["admission"].list_staff()

    if not staff:
        click.echo("No staff accounts found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'UID':<30} {'Email':<30} {'Role':<16} {'Last login'}")
    click.echo("="*90)

    for entry in staff:
        click.echo(f"{entry['id']:<30} {entry['email']:<30} {entry['role']:<16} {entry['lastLogin'] or '-'}")

    click.echo("="*90 + "\n")


@staff_group.command('set-role')
@click.argument('uid')
@click.argument('role')
@with_appcontext
def set_role_cli(uid, role):
    """Assign ROLE to the account UID."""
    try:
        message = current_app.extensions["admission"].update_role(uid, role, actor_email="cli")
    except (ValidationError, NotFoundError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS {message}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(products_group)
    app.cli.add_command(reminders_group)
    app.cli.add_command(staff_group)
