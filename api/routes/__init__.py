"""
API Routes for the lead-intelligence chat service.
"""

from . import chat, leads

__all__ = ["chat", "leads"]
