"""issuedesk: issue tracker with role-gated issue lifecycle and comments."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("issuedesk")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from issuedesk.core import Issue, IssueDeskDB

__all__ = ["Issue", "IssueDeskDB", "__version__"]
