"""
Custom Flask CLI commands.

These commands are registered with the app via ``register_commands()``
in the application factory. Run them with ``flask <command_name>``.

Usage::

    flask db-check                  # Verify database connectivity
    flask init-db                   # Create all tables
    flask seed-defaults             # Default roles and admin user
    flask reconcile-discrepancies   # Recompute hasDiscrepancy flags
"""

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import inspect

from assettrack.errors import ServiceError
from assettrack.extensions import db
from assettrack.models.user import ADMIN_ROLE, User

# -- Default values for the seeded admin user ------------------------------
_DEFAULT_USERNAME = "admin"
_DEFAULT_EMAIL = "admin@saarp.com"
_DEFAULT_PASSWORD = "Admin123!"


@click.command("db-check")
@with_appcontext
def db_check_command():
    """
    Verify database connectivity and list the tables found.

    Useful for confirming ``DATABASE_URL`` is correct and that
    migrations (or ``flask init-db``) have been run.
    """
    click.echo("=" * 60)
    click.echo("  AssetTrack — Database Connectivity Check")
    click.echo("=" * 60)

    click.echo(f"\n  Connection string: {db.engine.url.render_as_string(hide_password=True)}\n")

    # -- Step 1: Basic connectivity ----------------------------------------
    click.echo("[1/2] Testing connection...")
    try:
        row = db.session.execute(db.text("SELECT 1 AS connected")).fetchone()
        if row and row[0] == 1:
            click.secho("      ✓ Connected successfully.", fg="green")
        else:
            click.secho("      ✗ Unexpected result from test query.", fg="red")
            return
    except Exception as exc:  # pylint: disable=broad-exception-caught
        click.secho(f"      ✗ Connection failed: {exc}", fg="red")
        click.echo("\n  Troubleshooting tips:")
        click.echo("    - Is the database server running?")
        click.echo("    - Does your DATABASE_URL match your server config?")
        return

    # -- Step 2: Tables ----------------------------------------------------
    click.echo("[2/2] Checking tables...\n")
    tables = inspect(db.engine).get_table_names()
    if not tables:
        click.secho("      ✗ No tables found.", fg="red")
        click.echo("        Run 'flask db upgrade' or 'flask init-db' first.")
        return
    for name in sorted(tables):
        click.echo(f"      {name}")
    click.echo(f"\n      Total: {len(tables)} tables")

    click.echo("\n" + "=" * 60)
    click.secho("  All checks passed. Database is ready.", fg="green", bold=True)
    click.echo("=" * 60)


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Create all tables that do not exist yet (no migrations)."""
    db.create_all()
    click.secho("Database tables created.", fg="green")


@click.command("seed-defaults")
@click.option(
    "--password",
    default=_DEFAULT_PASSWORD,
    show_default=True,
    help="Password for the default admin user.",
)
@with_appcontext
def seed_defaults_command(password: str):
    """
    Create the default roles and the ``admin`` user.

    Safe to run repeatedly: existing roles and users are left untouched.
    """
    from assettrack.services import role_service, user_service  # pylint: disable=import-outside-toplevel

    click.echo("[1/2] Seeding roles...")
    created = role_service.ensure_default_roles()
    if created:
        for role in created:
            click.secho(f"      ✓ Created role {role.name}", fg="green")
    else:
        click.echo("      Roles already present.")

    click.echo("[2/2] Seeding admin user...")
    if User.query.filter_by(username=_DEFAULT_USERNAME).first() is not None:
        click.echo(f"      User '{_DEFAULT_USERNAME}' already exists.")
        return
    try:
        user_service.create_user(
            {
                "username": _DEFAULT_USERNAME,
                "email": _DEFAULT_EMAIL,
                "password": password,
                "first_name": "System",
                "last_name": "Administrator",
            },
            role_name=ADMIN_ROLE,
        )
    except ServiceError as exc:
        db.session.rollback()
        click.secho(f"      ✗ Could not create admin user: {exc.message}", fg="red")
        return
    click.secho(f"      ✓ Created user '{_DEFAULT_USERNAME}'", fg="green")
    if password == _DEFAULT_PASSWORD and not current_app.testing:
        click.secho("      ⚠ Change the default admin password.", fg="yellow")


@click.command("reconcile-discrepancies")
@with_appcontext
def reconcile_discrepancies_command():
    """Recompute every asset and movement hasDiscrepancy flag."""
    from assettrack.services import discrepancy_service  # pylint: disable=import-outside-toplevel

    corrected = discrepancy_service.reconcile_flags()
    if corrected:
        click.secho(f"Corrected {corrected} flag(s).", fg="yellow")
    else:
        click.secho("All flags consistent.", fg="green")


def register_commands(app):
    """Register all custom CLI commands with the Flask application."""
    app.cli.add_command(db_check_command)
    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_defaults_command)
    app.cli.add_command(reconcile_discrepancies_command)
