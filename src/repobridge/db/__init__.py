"""
repobridge.db

SQL persistence helpers (SQLAlchemy async).

Responsibilities:
- Provide the declarative base and the lifecycle-column mixin records need.
- Provide engine/session factories and dev/test table bootstrap.
"""

# Package marker.
