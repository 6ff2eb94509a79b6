"""
Service layer for business logic implementation.
Contains the request workflow, cascade cleanup, listings, favorites and error handling.
"""

from .request_workflow import RequestWorkflowService
from .cascade import CascadeCleanupService, CascadeReport
from .listing import ListingService
from .favorite import FavoriteService
from .error_handler import ErrorHandlerService

__all__ = [
    "RequestWorkflowService",
    "CascadeCleanupService",
    "CascadeReport",
    "ListingService",
    "FavoriteService",
    "ErrorHandlerService"
]
