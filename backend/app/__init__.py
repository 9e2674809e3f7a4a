# backend/app/__init__.py
"""
Notion gateway application package.

This package contains:
- main: FastAPI application entrypoint
- errors: error envelope and failure mapping
- notion: Notion API client, service and routes
- utils: environment variable helpers
"""
