"""
repobridge.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request context propagation for the FastAPI integration.
"""

# Package marker.
