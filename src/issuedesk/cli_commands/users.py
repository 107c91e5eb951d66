"""CLI commands for user administration: add-user, users, grant-admin, revoke-admin, edit-user, delete-user."""

from __future__ import annotations

import json as json_mod

import click

from issuedesk.cli_common import fail, get_context, get_db
from issuedesk.db_base import VALID_ROLES
from issuedesk.errors import IssueDeskError
from issuedesk.results import OperationResult
from issuedesk.users import UserAdminService


def _echo_result(result: OperationResult, as_json: bool) -> None:
    if as_json:
        click.echo(json_mod.dumps(result.to_dict(), indent=2, default=str))
    else:
        click.echo(result.message)


@click.command("add-user")
@click.argument("email")
@click.option("--first-name", required=True, help="First name")
@click.option("--last-name", required=True, help="Last name")
@click.option("--role", type=click.Choice(sorted(VALID_ROLES)), default="user", help="Role (default: user)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def add_user(email: str, first_name: str, last_name: str, role: str, as_json: bool) -> None:
    """Create a user account (admin)."""
    with get_db() as db:
        try:
            result = UserAdminService(db).create_user(
                get_context(db), first_name=first_name, last_name=last_name, email=email, role=role
            )
        except IssueDeskError as e:
            fail(e, as_json=as_json)
        if as_json:
            _echo_result(result, as_json)
        else:
            click.echo(f"Created user {result.data['id']}: {result.data['email']} ({result.data['role']})")


@click.command("users")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_users(as_json: bool) -> None:
    """List user accounts (admin)."""
    with get_db() as db:
        try:
            users = UserAdminService(db).list_users(get_context(db))
        except IssueDeskError as e:
            fail(e, as_json=as_json)

        if as_json:
            click.echo(json_mod.dumps([u.to_dict() for u in users], indent=2))
            return
        for u in users:
            click.echo(f"{u.id:<5} {u.role:<6} {u.full_name} <{u.email}>")


def _set_role(user_id: int, role: str, as_json: bool) -> None:
    with get_db() as db:
        try:
            result = UserAdminService(db).set_role(get_context(db), user_id, role)
        except IssueDeskError as e:
            fail(e, as_json=as_json)
        _echo_result(result, as_json)


@click.command("grant-admin")
@click.argument("user_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def grant_admin(user_id: int, as_json: bool) -> None:
    """Give a user the admin role (admin)."""
    _set_role(user_id, "admin", as_json)


@click.command("revoke-admin")
@click.argument("user_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def revoke_admin(user_id: int, as_json: bool) -> None:
    """Demote an admin to a regular user (admin)."""
    _set_role(user_id, "user", as_json)


@click.command("edit-user")
@click.argument("user_id", type=int)
@click.option("--first-name", default=None, help="New first name")
@click.option("--last-name", default=None, help="New last name")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def edit_user(user_id: int, first_name: str | None, last_name: str | None, as_json: bool) -> None:
    """Change a user's name (admin). Omitted fields keep their current value."""
    with get_db() as db:
        try:
            result = UserAdminService(db).update_user(get_context(db), user_id, first_name=first_name, last_name=last_name)
        except IssueDeskError as e:
            fail(e, as_json=as_json)
        _echo_result(result, as_json)


@click.command("delete-user")
@click.argument("user_id", type=int)
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def delete_user(user_id: int, yes: bool, as_json: bool) -> None:
    """Delete a user account (admin). Their comments remain, shown as a former user."""
    if not yes:
        click.confirm(f"Delete user {user_id}?", abort=True)
    with get_db() as db:
        try:
            result = UserAdminService(db).delete_user(get_context(db), user_id)
        except IssueDeskError as e:
            fail(e, as_json=as_json)
        _echo_result(result, as_json)


def register(cli: click.Group) -> None:
    """Register user administration commands with the CLI group."""
    cli.add_command(add_user)
    cli.add_command(list_users, "users")
    cli.add_command(grant_admin)
    cli.add_command(revoke_admin)
    cli.add_command(edit_user)
    cli.add_command(delete_user)
