"""CLI commands for deployment admin: init, dashboard, token."""

from __future__ import annotations

import json as json_mod
import sys
from pathlib import Path

import click

from issuedesk.cli_common import fail, get_db
from issuedesk.core import (
    DB_FILENAME,
    DEFAULT_PORT,
    DEFAULT_SESSION_TTL_HOURS,
    ISSUEDESK_DIR_NAME,
    IssueDeskDB,
    find_issuedesk_root,
    read_config,
    resolve_session_ttl_hours,
    write_config,
)
from issuedesk.errors import IssueDeskError, ValidationError
from issuedesk.validation import clean_email, clean_name


def _bootstrap_admin(db: IssueDeskDB, email: str, first_name: str, last_name: str) -> None:
    """Create the first admin account. Skipped once any admin exists."""
    if db.count_admins():
        click.echo("  Admin: already present, --admin-email ignored")
        return
    clean_e, err = clean_email(email)
    if err:
        raise ValidationError("email", err)
    first, err = clean_name(first_name, "First name")
    if err:
        raise ValidationError("first_name", err)
    last, err = clean_name(last_name, "Last name")
    if err:
        raise ValidationError("last_name", err)
    user = db.create_user(first, last, clean_e, role="admin")
    click.echo(f"  Admin: {user.full_name} <{user.email}> (id {user.id})")


@click.command()
@click.option("--name", default=None, help="Deployment name (default: directory name)")
@click.option("--admin-email", default=None, help="Create the first admin account with this email")
@click.option("--first-name", default="Admin", help="First name for --admin-email")
@click.option("--last-name", default="User", help="Last name for --admin-email")
def init(name: str | None, admin_email: str | None, first_name: str, last_name: str) -> None:
    """Initialize .issuedesk/ in the current directory."""
    cwd = Path.cwd()
    issuedesk_dir = cwd / ISSUEDESK_DIR_NAME

    if issuedesk_dir.exists():
        click.echo(f"{ISSUEDESK_DIR_NAME}/ already exists in {cwd}")
    else:
        issuedesk_dir.mkdir()
        config = {
            "name": name or cwd.name,
            "version": 1,
            "port": DEFAULT_PORT,
            "session_ttl_hours": DEFAULT_SESSION_TTL_HOURS,
        }
        write_config(issuedesk_dir, config)
        click.echo(f"Initialized {ISSUEDESK_DIR_NAME}/ in {cwd}")
        click.echo(f"  Name: {config['name']}")
        click.echo(f"  Database: {issuedesk_dir / DB_FILENAME}")

    # Still ensure DB is initialized
    with IssueDeskDB(issuedesk_dir / DB_FILENAME) as db:
        db.initialize()
        if admin_email:
            try:
                _bootstrap_admin(db, admin_email, first_name, last_name)
            except IssueDeskError as e:
                fail(e)


@click.command()
@click.option("--port", default=None, type=int, help="Port (default: config or 8390)")
@click.option("--host", default="127.0.0.1", help="Bind address")
def dashboard(port: int | None, host: str) -> None:
    """Serve the HTTP API."""
    try:
        from issuedesk.dashboard import main as dashboard_main
    except ImportError:
        click.echo("The API server requires fastapi and uvicorn to be installed.", err=True)
        sys.exit(1)
    try:
        find_issuedesk_root()
    except FileNotFoundError:
        click.echo(f"No {ISSUEDESK_DIR_NAME}/ found. Run 'issuedesk init' first.", err=True)
        sys.exit(1)
    dashboard_main(port=port, host=host)


@click.command()
@click.argument("email")
@click.option("--ttl-hours", default=None, type=int, help="Session lifetime (default: config)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def token(email: str, ttl_hours: int | None, as_json: bool) -> None:
    """Mint an API session token for a user."""
    with get_db() as db:
        try:
            user = db.get_user_by_email(email.strip().lower())
        except IssueDeskError as e:
            fail(e, as_json=as_json)
        if user is None:
            if as_json:
                click.echo(json_mod.dumps({"error": f"No user with email {email}"}))
            else:
                click.echo(f"No user with email {email}", err=True)
            sys.exit(1)
        if ttl_hours is None:
            ttl_hours = resolve_session_ttl_hours(read_config(find_issuedesk_root()))
        if ttl_hours < 1:
            click.echo("--ttl-hours must be at least 1", err=True)
            sys.exit(1)
        try:
            session_token = db.create_session(user.id, ttl_hours=ttl_hours)
        except IssueDeskError as e:
            fail(e, as_json=as_json)
        if as_json:
            click.echo(json_mod.dumps({"token": session_token, "user_id": user.id, "ttl_hours": ttl_hours}))
        else:
            click.echo(session_token)


def register(cli: click.Group) -> None:
    """Register admin commands with the CLI group."""
    cli.add_command(init)
    cli.add_command(dashboard)
    cli.add_command(token)
