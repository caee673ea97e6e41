"""
Admin module

Federation backend: athletes, events, results, ranking snapshots, selections
"""

from .router import router as admin_router
from .service import AdminService, ConflictError

__all__ = [
    "admin_router",
    "AdminService",
    "ConflictError",
]
