"""API package exports."""

from messenger.api.middleware import CorrelationIdMiddleware
from messenger.api.routes import router

__all__ = ["router", "CorrelationIdMiddleware"]
