"""
API module containing the relay routes.
"""

from .routes import router

__all__ = ["router"]
