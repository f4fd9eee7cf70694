"""
API Middleware.
"""

from .metrics import MetricsMiddleware, metrics_endpoint
from .rate_limit import RateLimitMiddleware, get_client_ip

__all__ = ["MetricsMiddleware", "metrics_endpoint", "RateLimitMiddleware", "get_client_ip"]
