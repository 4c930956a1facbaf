"""
repobridge.documents

Document-store helpers (Motor).

Responsibilities:
- Build the Motor client and resolve collections from settings.
"""

# Package marker.
