"""
Favorite endpoints.
"""

from fastapi import APIRouter, Depends
from typing import Dict, List
from uuid import UUID

from property_exchange.models.user import User
from property_exchange.schemas.listing import ListingResponse
from property_exchange.services.error_handler import get_error_responses
from property_exchange.services.favorite import FavoriteService
from property_exchange.services.listing import ListingService
from property_exchange.utils.dependencies import (
    get_current_user,
    get_favorite_service,
    get_listing_service
)


router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.post(
    "/{listing_id}/toggle",
    summary="Toggle favorite",
    description="Add the listing to the caller's favorites, or remove it if already there.",
    responses=get_error_responses(401, 404)
)
async def toggle_favorite(
    listing_id: UUID,
    current_user: User = Depends(get_current_user),
    favorites: FavoriteService = Depends(get_favorite_service)
) -> Dict[str, bool]:
    return {"is_favorite": await favorites.toggle(current_user, listing_id)}


@router.get(
    "",
    response_model=List[ListingResponse],
    summary="My favorites",
    responses=get_error_responses(401)
)
async def list_favorites(
    current_user: User = Depends(get_current_user),
    favorites: FavoriteService = Depends(get_favorite_service),
    listing_service: ListingService = Depends(get_listing_service)
) -> List[ListingResponse]:
    listings = await favorites.list_favorites(current_user)
    return [listing_service.to_response(listing) for listing in listings]
