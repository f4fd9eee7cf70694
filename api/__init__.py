"""
API Module for the lead-intelligence chat service.

FastAPI application with routes for:
- Chat interactions
- Lead intelligence for the sales dashboard
"""

from .main import create_app, app

__all__ = ["create_app", "app"]
