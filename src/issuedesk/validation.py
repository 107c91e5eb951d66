"""Shared validation functions for all entry points.

Pure functions with no FastAPI or Click dependencies. Each returns
``(cleaned_value, None)`` on success or ``(empty, error_message)`` on failure;
callers decide how to surface the error.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any

from issuedesk.db_base import VALID_PRIORITIES, VALID_ROLES

_MAX_TITLE_LENGTH = 255
_MAX_NAME_LENGTH = 100
_MAX_EMAIL_LENGTH = 254
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def sanitize_text(value: Any, name: str, *, max_length: int) -> tuple[str, str | None]:
    """Validate and clean a single-line text field.

    Strips whitespace, then checks: non-empty, max length, no control/format chars.
    """
    if not isinstance(value, str):
        return ("", f"{name} must be a string")
    # Check before stripping: reject "\nbad" rather than silently absorbing
    # the newline via strip().
    for ch in value:
        if unicodedata.category(ch).startswith("C"):  # Cc (control) and Cf (format)
            return ("", f"{name} must not contain control characters (found U+{ord(ch):04X})")
    cleaned = value.strip()
    if not cleaned:
        return ("", f"{name} cannot be empty")
    if len(cleaned) > max_length:
        return ("", f"{name} must be at most {max_length} characters")
    return (cleaned, None)


def clean_title(value: Any) -> tuple[str, str | None]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return ("", "Issue Title cannot be empty.")
    return sanitize_text(value, "Issue Title", max_length=_MAX_TITLE_LENGTH)


def clean_description(value: Any) -> tuple[str, str | None]:
    """Descriptions are free-form and may be empty; only the type is checked."""
    if value is None:
        return ("", None)
    if not isinstance(value, str):
        return ("", "Description must be a string")
    return (value.strip(), None)


def clean_priority(value: Any) -> tuple[str, str | None]:
    """Exact match against High/Medium/Low; no case folding."""
    if isinstance(value, str) and value in VALID_PRIORITIES:
        return (value, None)
    return ("", "Invalid Priority selected.")


def clean_comment(value: Any) -> tuple[str, str | None]:
    """Comments are multi-line, so only emptiness is checked."""
    if not isinstance(value, str) or not value.strip():
        return ("", "Comment cannot be empty.")
    return (value.strip(), None)


def clean_name(value: Any, name: str) -> tuple[str, str | None]:
    return sanitize_text(value, name, max_length=_MAX_NAME_LENGTH)


def clean_email(value: Any) -> tuple[str, str | None]:
    cleaned, err = sanitize_text(value, "Email", max_length=_MAX_EMAIL_LENGTH)
    if err:
        return ("", err)
    if not _EMAIL_RE.match(cleaned):
        return ("", f"Invalid email address: {cleaned}")
    return (cleaned.lower(), None)


def clean_role(value: Any) -> tuple[str, str | None]:
    if isinstance(value, str) and value in VALID_ROLES:
        return (value, None)
    return ("", f"Invalid role: {value!r}. Must be one of: admin, user")
