"""HTTP surface for the review engine (FastAPI)."""

from recall_api.main import create_app

__all__ = ["create_app"]
