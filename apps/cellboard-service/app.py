"""
App assembly entry point.

Re-exports the FastAPI `app` from `cellboard.api.main` so the service can be
started with ``uvicorn app:app`` from the service root.
"""

from cellboard.api.main import app  # noqa: F401
