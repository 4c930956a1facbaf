"""
repobridge.api

FastAPI integration.

Responsibilities:
- App factory with health/readiness probes.
- Dependency helpers building request-scoped repositories.
- A generic CRUD router over any `Repository`.
"""

# Package marker.
