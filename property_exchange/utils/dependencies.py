"""
FastAPI dependency injection utilities for caller identity and services.
The caller is identified by an opaque user id issued by the identity provider and sent in the X-User-Id header.
"""

from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from property_exchange.database import get_db
from property_exchange.models.user import User
from property_exchange.repositories.user import UserRepository
from property_exchange.services.blob_store import LocalBlobStore, get_blob_store
from property_exchange.services.cascade import CascadeCleanupService
from property_exchange.services.favorite import FavoriteService
from property_exchange.services.listing import ListingService
from property_exchange.services.request_workflow import RequestWorkflowService
from property_exchange.utils.exceptions import UnauthorizedError


async def get_user_repository(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


async def get_listing_service(
    db: AsyncSession = Depends(get_db),
    blob_store: LocalBlobStore = Depends(get_blob_store)
) -> ListingService:
    """
    Get listing service instance.

    Args:
        db: Database session
        blob_store: Image blob store

    Returns:
        ListingService instance
    """
    return ListingService(db, blob_store=blob_store)


async def get_workflow_service(db: AsyncSession = Depends(get_db)) -> RequestWorkflowService:
    return RequestWorkflowService(db)


async def get_cascade_service(
    db: AsyncSession = Depends(get_db),
    blob_store: LocalBlobStore = Depends(get_blob_store)
) -> CascadeCleanupService:
    return CascadeCleanupService(db, blob_store=blob_store)


async def get_favorite_service(db: AsyncSession = Depends(get_db)) -> FavoriteService:
    return FavoriteService(db)


async def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    user_repo: UserRepository = Depends(get_user_repository)
) -> User:
    """
    Resolve the caller from the X-User-Id header.

    Args:
        x_user_id: Opaque user id from the identity provider
        user_repo: User repository used for the existence check

    Returns:
        Current User object

    Raises:
        UnauthorizedError: If the header is missing, malformed or names no active user
    """
    if not x_user_id:
        raise UnauthorizedError("X-User-Id header required")

    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise UnauthorizedError("Malformed user id")

    user = await user_repo.get_active(user_id)
    if user is None:
        raise UnauthorizedError("Unknown user")
    return user
