"""HTTP surface for the runtime: routers, schemas and error handlers."""

from .deps import RouteDeps
from .errors import install_error_handlers
from .rate_limit import RateLimiter, SlidingWindowRateLimiter
from .router import create_router

__all__ = ["RouteDeps", "RateLimiter", "SlidingWindowRateLimiter", "create_router", "install_error_handlers"]
