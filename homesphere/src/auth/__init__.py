"""
Authentication package.

Exports the BasicAuth dependency class used by the HTTP API route handlers.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-014)

TODO:
- None
"""

from homesphere.src.auth.basic import BasicAuth

__all__ = ["BasicAuth"]
