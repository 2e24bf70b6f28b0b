"""
RFC HTTP API

Thin FastAPI layer: validates JSON bodies against the request models
and translates orchestrator results and errors into JSON envelopes.
"""

from .routes import configure, router

__all__ = ["configure", "router"]
