"""ASGI entrypoint.

Usage:
    uvicorn app.main:app --reload
"""

from app.core.app_factory import create_app

app = create_app()
