# Overview: Flask CLI command groups for bootstrap, admin-code recovery and audit inspection.

# backend/qrfactory/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create tables and default settings (admin code, install URL). Idempotent.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Auth:
# - python -m flask auth show-admin-code
#   Print the current admin code (local recovery).
# - python -m flask auth issue-token --type login --ttl 10
#   Issue a single-use token without going through HTTP.
#
# Audit:
# - python -m flask audit tail --code ABCD-EFGH-XYZ --limit 20

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import get_services
from .services.settings_service import ADMIN_CODE


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def system_init():
    """Create tables and default settings."""
    db.create_all()
    get_services().settings.ensure_defaults()
    click.echo("Database ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset.')
@with_appcontext
def system_reset_db(yes):
    """Drop and recreate all tables. Deletes all data."""
    if not yes:
        raise click.UsageError("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    get_services().settings.ensure_defaults()
    current_app.logger.warning("Database reset from CLI")
    click.echo("Database reset.")


@click.group('auth')
def auth_group():
    """Admin code and token commands."""


@auth_group.command('show-admin-code')
@with_appcontext
def show_admin_code():
    code = get_services().settings.get(ADMIN_CODE)
    if not code:
        raise click.ClickException("No admin code set. Run: flask system init")
    click.echo(code)


@auth_group.command('issue-token')
@click.option('--type', 'token_type', type=click.Choice(['login', 'logout']), default='login')
@click.option('--ttl', 'ttl_minutes', type=int, default=10, show_default=True)
@with_appcontext
def issue_token(token_type, ttl_minutes):
    services = get_services()
    issued = services.tokens.issue(
        services.settings.get(ADMIN_CODE),
        token_type,
        ttl_minutes,
        actor="cli",
    )
    click.echo(json.dumps(issued, indent=2))


@click.group('audit')
def audit_group():
    """Audit ledger inspection."""


@audit_group.command('tail')
@click.option('--code', default=None, help='Filter by correlation key.')
@click.option('--limit', default=20, show_default=True, type=int)
@with_appcontext
def audit_tail(code, limit):
    for entry in get_services().audit.query(code=code, limit=limit):
        click.echo(
            f"{entry['ts']}  {entry['action']:<18} {entry['code']:<24} "
            f"{entry['actor'] or '-':<12} {json.dumps(entry['detail'], sort_keys=True)}"
        )


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(auth_group)
    app.cli.add_command(audit_group)
