"""
Public site module

Published rankings, competition results, athlete profiles and team selections
"""

from .router import router as public_router

__all__ = ["public_router"]
