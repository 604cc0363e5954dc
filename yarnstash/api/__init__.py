"""
HTTP API for YarnStash.
"""

from .auth import ApiAuth, get_current_user
from .router import create_api_router

__all__ = ["ApiAuth", "get_current_user", "create_api_router"]
