"""CLI commands for issues and comments: create, show, list, update, close, comment, comments."""

from __future__ import annotations

import json as json_mod

import click

from issuedesk.cli_common import fail, get_context, get_db
from issuedesk.db_base import VALID_PRIORITIES
from issuedesk.errors import IssueDeskError
from issuedesk.lifecycle import IssueLifecycleService
from issuedesk.results import OperationResult


def _echo_result(result: OperationResult, as_json: bool) -> None:
    if as_json:
        click.echo(json_mod.dumps(result.to_dict(), indent=2, default=str))
    else:
        click.echo(result.message)


@click.command()
@click.argument("title")
@click.option("--priority", "-p", default="Medium", help="Priority (High, Medium, Low)")
@click.option("--description", "-d", default="", help="Description")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def create(title: str, priority: str, description: str, as_json: bool) -> None:
    """Create a new issue (admin)."""
    with get_db() as db:
        try:
            result = IssueLifecycleService(db).create_issue(
                get_context(db), title=title, description=description, priority=priority
            )
        except IssueDeskError as e:
            fail(e, as_json=as_json)
        if as_json:
            _echo_result(result, as_json)
        else:
            click.echo(f"Created #{result.data['id']}: {result.data['title']}")


@click.command()
@click.argument("issue_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(issue_id: int, as_json: bool) -> None:
    """Show issue details and comments."""
    with get_db() as db:
        try:
            detail = IssueLifecycleService(db).issue_detail(get_context(db), issue_id)
        except IssueDeskError as e:
            fail(e, as_json=as_json)

        if as_json:
            click.echo(json_mod.dumps(detail, indent=2, default=str))
            return

        click.echo(f"ID:       {detail['id']}")
        click.echo(f"Title:    {detail['title']}")
        click.echo(f"Status:   {detail['status']}")
        click.echo(f"Priority: {detail['priority']}")
        click.echo(f"Opened:   {detail['date_opened']}")
        if detail["date_closed"]:
            click.echo(f"Closed:   {detail['date_closed']}")
        if detail["description"]:
            click.echo(f"\n--- Description ---\n{detail['description']}")
        if detail["comments"]:
            click.echo("\n--- Comments ---")
            for c in detail["comments"]:
                click.echo(f"  [{c['date_posted']}] {c['author_first_name']} {c['author_last_name']}: {c['comment']}")


@click.command("list")
@click.option(
    "--status",
    type=click.Choice(["open", "closed"], case_sensitive=False),
    default=None,
    help="Filter by status",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_issues(status: str | None, as_json: bool) -> None:
    """List issues, newest first."""
    with get_db() as db:
        try:
            issues = IssueLifecycleService(db).list_issues(get_context(db), status=status.lower() if status else None)  # type: ignore[arg-type]
        except IssueDeskError as e:
            fail(e, as_json=as_json)

        if as_json:
            click.echo(json_mod.dumps([i.to_dict() for i in issues], indent=2, default=str))
            return

        for i in issues:
            click.echo(f"#{i.id:<5} {i.priority:<7} {i.status:<7} {i.title}")
        if not issues:
            click.echo("No issues.")


@click.command()
@click.argument("issue_id", type=int)
@click.option("--title", default=None, help="New title")
@click.option("--priority", "-p", default=None, type=click.Choice(VALID_PRIORITIES), help="New priority")
@click.option("--description", "-d", default=None, help="New description")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def update(issue_id: int, title: str | None, priority: str | None, description: str | None, as_json: bool) -> None:
    """Update an open issue (admin). Omitted fields keep their current value."""
    with get_db() as db:
        changes = {"title": title, "description": description, "priority": priority}
        try:
            result = IssueLifecycleService(db).patch_issue(
                get_context(db),
                issue_id,
                {name: value for name, value in changes.items() if value is not None},
            )
        except IssueDeskError as e:
            fail(e, as_json=as_json)
        _echo_result(result, as_json)


@click.command()
@click.argument("issue_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def close(issue_id: int, as_json: bool) -> None:
    """Close an issue (admin). Closed issues cannot be reopened."""
    with get_db() as db:
        try:
            result = IssueLifecycleService(db).close_issue(get_context(db), issue_id)
        except IssueDeskError as e:
            fail(e, as_json=as_json)
        _echo_result(result, as_json)


@click.command()
@click.argument("issue_id", type=int)
@click.argument("text")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def comment(issue_id: int, text: str, as_json: bool) -> None:
    """Add a comment to an open issue."""
    with get_db() as db:
        try:
            result = IssueLifecycleService(db).add_comment(get_context(db), issue_id, text)
        except IssueDeskError as e:
            fail(e, as_json=as_json)
        _echo_result(result, as_json)


@click.command()
@click.argument("issue_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def comments(issue_id: int, as_json: bool) -> None:
    """List comments on an issue, oldest first."""
    with get_db() as db:
        try:
            rows = IssueLifecycleService(db).list_comments(get_context(db), issue_id)
        except IssueDeskError as e:
            fail(e, as_json=as_json)

        if as_json:
            click.echo(json_mod.dumps(rows, indent=2, default=str))
            return

        for c in rows:
            click.echo(f"[{c['date_posted']}] {c['author_first_name']} {c['author_last_name']}: {c['comment']}")
        if not rows:
            click.echo("No comments.")


def register(cli: click.Group) -> None:
    """Register issue and comment commands with the CLI group."""
    cli.add_command(create)
    cli.add_command(show)
    cli.add_command(list_issues, "list")
    cli.add_command(update)
    cli.add_command(close)
    cli.add_command(comment)
    cli.add_command(comments)
