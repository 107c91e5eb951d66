# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, db_base.py, or any mixin: this prevents circular imports.
"""Typed return-value contracts for issuedesk core and API layers."""

from __future__ import annotations

from issuedesk.types.api import ErrorResponse, IssueDetail, MeResponse, OperationResultDict
from issuedesk.types.core import (
    CommentView,
    ISOTimestamp,
    IssueDict,
    ProjectConfig,
    UserDict,
)

__all__ = [
    "CommentView",
    "ErrorResponse",
    "ISOTimestamp",
    "IssueDetail",
    "IssueDict",
    "MeResponse",
    "OperationResultDict",
    "ProjectConfig",
    "UserDict",
]
