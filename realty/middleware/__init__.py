"""
Middleware package for the Realty Marketplace API.
"""

from .request_context import RequestContextMiddleware

__all__ = [
    "RequestContextMiddleware"
]
