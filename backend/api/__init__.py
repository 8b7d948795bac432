"""
API Routes Package
"""
from .routes import router as main_router

__all__ = [
    "main_router",
]
