"""
asgi.py -- ASGI entry point for TokenGate.

Run with:  uvicorn asgi:app --reload
           python main.py serve

The application itself is assembled in api/main.py. This module only
re-exports it under the conventional name so process managers (uvicorn,
gunicorn -k uvicorn.workers.UvicornWorker) have a stable target.
"""

from api.main import app

__all__ = ["app"]
