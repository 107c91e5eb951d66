"""Shared CLI helpers.

Provides ``get_db()``, ``get_context()`` and ``fail()`` so that ``cli.py``
and the ``cli_commands/*.py`` modules can access them without circular
imports.
"""

from __future__ import annotations

import json as json_mod
import sys
from typing import NoReturn

import click

from issuedesk.auth import RequestContext, context_for_email
from issuedesk.core import DB_FILENAME, ISSUEDESK_DIR_NAME, IssueDeskDB, find_issuedesk_root
from issuedesk.errors import IssueDeskError
from issuedesk.logging import setup_logging


def get_db() -> IssueDeskDB:
    """Discover .issuedesk/ and return an initialized IssueDeskDB."""
    try:
        issuedesk_dir = find_issuedesk_root()
    except FileNotFoundError:
        click.echo(f"No {ISSUEDESK_DIR_NAME}/ found. Run 'issuedesk init' first.", err=True)
        sys.exit(1)
    setup_logging(issuedesk_dir)
    db = IssueDeskDB(issuedesk_dir / DB_FILENAME)
    db.initialize()
    return db


def get_context(db: IssueDeskDB) -> RequestContext:
    """The acting user named by the group's ``--as`` option."""
    obj = click.get_current_context().find_root().obj or {}
    return context_for_email(db, obj.get("as_email"))


def fail(exc: IssueDeskError, *, as_json: bool = False) -> NoReturn:
    """Report a domain error and exit non-zero."""
    if as_json:
        click.echo(json_mod.dumps({"error": exc.to_dict()}))
    else:
        click.echo(f"Error: {exc.message}", err=True)
    sys.exit(1)
