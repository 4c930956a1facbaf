"""
repobridge.errors

Error taxonomy for the repository layer.

Only "not found" is synthesized here. Connectivity, constraint and driver errors
raised by SQLAlchemy or PyMongo propagate to callers unchanged.
"""

from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    pass


class ModelNotFoundError(RepositoryError, LookupError):
    """Raised when an identity or single-record lookup matches nothing."""

    def __init__(self, model: str, condition: Any = None) -> None:
        super().__init__(f"{model} not found")
        self.model = model
        self.condition = condition


class UnsupportedQueryError(RepositoryError, ValueError):
    """A filter, sort or projection the backend cannot express."""
