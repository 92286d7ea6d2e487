"""
HTTP API package: FastAPI application factory and route modules.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-014)
"""
