"""
tests.test_package

Public names re-exported from the top-level package.
"""

from __future__ import annotations

import repobridge
from repobridge.errors import ModelNotFoundError
from repobridge.repository import Repository


def test_public_exports() -> None:
    assert repobridge.Repository is Repository
    assert repobridge.ModelNotFoundError is ModelNotFoundError
    assert set(repobridge.__all__) <= set(dir(repobridge))
    assert repobridge.__version__ == "0.1.0"
