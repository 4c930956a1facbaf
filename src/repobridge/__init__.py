"""
repobridge

Top-level package for the dual-backend repository library.

Responsibilities:
- Expose package version metadata.
- Re-export the public repository contract for application code.
"""

from repobridge.errors import ModelNotFoundError, RepositoryError, UnsupportedQueryError
from repobridge.query import ArchivedMode, Paginated, PageInfo, PaginationRequest
from repobridge.repository import Repository

__all__ = [
    "__version__",
    "ArchivedMode",
    "ModelNotFoundError",
    "PageInfo",
    "Paginated",
    "PaginationRequest",
    "Repository",
    "RepositoryError",
    "UnsupportedQueryError",
]

__version__ = "0.1.0"