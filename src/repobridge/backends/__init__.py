"""
repobridge.backends

Storage backend adapters.

Responsibilities:
- Define the backend capability contract (`base.StorageBackend`).
- Provide the SQLAlchemy (`sql`) and Motor (`document`) implementations.
"""

# Package marker; backends are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Importing `repobridge.backends.sql` requires SQLAlchemy; `repobridge.backends.document`
# requires Motor. Neither is imported here.
