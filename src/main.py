"""ASGI entry point for the catalog service (``uvicorn src.main:app``)."""

from src.application import create_app

app = create_app()

__all__ = ["app"]
