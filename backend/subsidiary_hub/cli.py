# Overview: Flask CLI command groups for bootstrap, user inspection and database configuration.

# backend/subsidiary_hub/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables on the configured engine (development; use `flask db upgrade` otherwise).
# - python -m flask system ensure-admin
#   Create the default admin (admin / admin123) if it does not exist.
#
# Users:
# - python -m flask users list
#   List all users with role and subsidiary.
# - python -m flask users create --username jdoe --password secret1 --role staff --subsidiary-id 1
#   Create a user (prompts if options are omitted).
#
# Database configuration (takes effect on restart):
# - python -m flask db-config show
# - python -m flask db-config set-engine mysql

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .permissions import Role
from .persistence import (
    DatabaseConfigError,
    get_state,
    load_database_settings,
    merge_settings_document,
    parse_engine,
    read_settings_document,
    save_settings_document,
)
from .services import auth_service, user_service
from .validation import ConflictError, NotFoundError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    state = get_state()
    if not state.ready:
        raise click.ClickException(f"Database not ready: {state.last_error}")
    db.create_all()
    click.echo(f"PASS Tables created on {state.engine}")


@system_group.command('ensure-admin')
@with_appcontext
def ensure_admin():
    """Create the default admin user if missing (idempotent)."""
    if auth_service.ensure_default_admin():
        click.echo(f"PASS Created default admin '{auth_service.DEFAULT_ADMIN_USERNAME}'")
        click.echo("WARN  Change the default password immediately in production!")
    else:
        click.echo(f"PASS Default admin '{auth_service.DEFAULT_ADMIN_USERNAME}' already exists")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = user_service.list_users()
    if not users:
        click.echo("No users found.")
        return
    for user in users:
        scope = f"subsidiary {user.subsidiary_id}" if user.subsidiary_id else "MHC"
        click.echo(f"{user.id:>4}  {user.username:<24} {user.role:<18} {scope}")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice([r.value for r in Role]), prompt=True)
@click.option('--subsidiary-id', type=int, default=None, help='Required for subsidiary_admin and staff')
@with_appcontext
def create_user(username, password, role, subsidiary_id):
    try:
        user = user_service.create_user(
            username=username,
            password=password,
            role=role,
            subsidiary_id=subsidiary_id,
        )
    except (ValidationError, NotFoundError, ConflictError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.username} (ID: {user.id}, role: {user.role})")


@click.group('db-config')
def db_config_group():
    """Database engine configuration file."""


@db_config_group.command('show')
@with_appcontext
def show_db_config():
    state = get_state()
    settings = load_database_settings(state.config_path)
    click.echo(f"Config file: {state.config_path}")
    click.echo(f"Configured engine: {settings.engine.value}")
    click.echo(f"Active engine: {state.engine} (ready: {state.ready})")
    for kind, values in settings.public_dict().items():
        if kind == "engine":
            continue
        details = ", ".join(f"{k}={v}" for k, v in values.items() if v is not None)
        click.echo(f"  {kind}: {details}")


@db_config_group.command('set-engine')
@click.argument('engine')
@with_appcontext
def set_engine(engine):
    """Select the engine used on next start."""
    state = get_state()
    try:
        kind = parse_engine(engine)
        document = merge_settings_document(
            read_settings_document(state.config_path), {"engine": kind.value}
        )
    except DatabaseConfigError as e:
        raise click.ClickException(str(e))

    save_settings_document(state.config_path, document)
    current_app.logger.info("Database engine set to %s via CLI", kind.value)
    click.echo(f"PASS Engine set to {kind.value}. Restart the server for it to take effect.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(db_config_group)
