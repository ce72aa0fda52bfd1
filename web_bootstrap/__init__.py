"""
Web Bootstrap Service Package.

A minimal HTTP entry point: JSON and URL-encoded body parsing, static file
serving, a CORS policy and a single liveness route.
"""

__version__ = "1.0.0"
__description__ = "Minimal HTTP entry point with body parsing, static files and CORS"

# Export main components
from .app import app, create_app
from .config import Settings, settings

__all__ = [
    "app",
    "create_app",
    "Settings",
    "settings",
    "__version__",
]
