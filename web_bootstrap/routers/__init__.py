"""
API routers for the web bootstrap service.
"""

from . import root_router

__all__ = ["root_router"]
