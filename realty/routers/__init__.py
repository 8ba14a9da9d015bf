"""
API route handlers for the Realty Marketplace API.
"""

from .auth import router as auth_router
from .home import router as home_router
from .properties import router as properties_router
from .admin import router as admin_router

__all__ = ["auth_router", "home_router", "properties_router", "admin_router"]
