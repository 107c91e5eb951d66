"""CLI for the issuedesk issue tracker.

Convention-based: discovers .issuedesk/ by walking up from cwd. The acting
user is named with ``--as EMAIL``; commands run with that user's role.

Usage:
    issuedesk init --admin-email a@example.com   # Initialize .issuedesk/ in cwd
    issuedesk token a@example.com                # Mint an API session token
    issuedesk dashboard                          # Serve the HTTP API
    issuedesk --as a@example.com create "Bug"    # Create issue (admin)
    issuedesk --as u@example.com show 5          # Show issue and comments
    issuedesk --as u@example.com list --status=open
    issuedesk --as a@example.com update 5 --priority High
    issuedesk --as a@example.com close 5         # Close issue (admin)
    issuedesk --as u@example.com comment 5 "Works for me"
    issuedesk --as u@example.com comments 5      # List comments
    issuedesk --as a@example.com add-user b@example.com --first-name B --last-name C
    issuedesk --as a@example.com grant-admin 2   # Also: revoke-admin, edit-user, delete-user
"""

from __future__ import annotations

import click

from issuedesk import __version__
from issuedesk.cli_commands import admin, issues, users


@click.group()
@click.version_option(version=__version__, prog_name="issuedesk")
@click.option(
    "--as",
    "as_email",
    envvar="ISSUEDESK_AS",
    default=None,
    help="Email of the acting user (env: ISSUEDESK_AS)",
)
@click.pass_context
def cli(ctx: click.Context, as_email: str | None) -> None:
    """issuedesk: a small role-based issue tracker."""
    ctx.ensure_object(dict)
    ctx.obj["as_email"] = as_email


for _module in (admin, issues, users):
    _module.register(cli)


if __name__ == "__main__":
    cli()
