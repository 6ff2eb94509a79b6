"""
User endpoints: registering the identity projection and closing accounts.
"""

from fastapi import APIRouter, Depends, status
from uuid import UUID

from property_exchange.models.user import User
from property_exchange.repositories.user import UserRepository
from property_exchange.schemas.user import UserCreate, UserResponse
from property_exchange.schemas.transaction import CascadeReportResponse
from property_exchange.services.cascade import CascadeCleanupService
from property_exchange.services.error_handler import get_error_responses
from property_exchange.utils.dependencies import (
    get_cascade_service,
    get_current_user,
    get_user_repository
)
from property_exchange.utils.exceptions import ValidationError


router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register user",
    description="Record a user issued by the identity provider.",
    responses=get_error_responses(409, 422)
)
async def register_user(
    user_data: UserCreate,
    user_repo: UserRepository = Depends(get_user_repository)
) -> UserResponse:
    try:
        user = await user_repo.create_user(user_data.model_dump())
    except ValueError as e:
        raise ValidationError(str(e))
    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    response_model=CascadeReportResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete user",
    description="Delete a user with their listings and every request, transaction and favorite referencing them. "
                "Users may delete themselves; admins may delete anyone.",
    responses=get_error_responses(401, 403, 404, 409, 500)
)
async def delete_user(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    cascade: CascadeCleanupService = Depends(get_cascade_service)
) -> CascadeReportResponse:
    """
    Delete a user account.

    Args:
        user_id: UUID of the user to delete
        current_user: Caller
        cascade: Cascade cleanup service

    Returns:
        Rows deleted per table and the released images
    """
    report = await cascade.delete_user(user_id, current_user)
    return CascadeReportResponse.model_validate(report)
