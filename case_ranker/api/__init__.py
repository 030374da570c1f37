"""
HTTP API for case search and feedback.
"""

from .routes import router

__all__ = ["router"]
