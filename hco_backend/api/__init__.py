"""API package exports."""

from hco_backend.api.auth import router as auth_router
from hco_backend.api.middleware import CorrelationIdMiddleware
from hco_backend.api.routes import router

__all__ = ["auth_router", "router", "CorrelationIdMiddleware"]
