"""
Authorization predicates.

Pure functions of (entity, caller); they never raise and never touch the
database. ``None`` for either side is simply "not allowed".
"""

from typing import Optional
import uuid

from property_exchange.models.listing import Listing
from property_exchange.models.request import ListingRequest
from property_exchange.models.user import User, UserRole


def is_owner(listing: Optional[Listing], user_id: Optional[uuid.UUID]) -> bool:
    return listing is not None and user_id is not None and listing.owner_id == user_id


def is_seller(request: Optional[ListingRequest], user_id: Optional[uuid.UUID]) -> bool:
    return request is not None and user_id is not None and request.seller_id == user_id


def is_requester(request: Optional[ListingRequest], user_id: Optional[uuid.UUID]) -> bool:
    return request is not None and user_id is not None and request.requester_id == user_id


def is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == UserRole.ADMIN


def can_manage_listing(listing: Optional[Listing], user: Optional[User]) -> bool:
    """Owners manage their listings; admins manage every listing."""
    if user is None:
        return False
    return is_admin(user) or is_owner(listing, user.id)


def can_view_request(request: Optional[ListingRequest], user_id: Optional[uuid.UUID]) -> bool:
    return is_requester(request, user_id) or is_seller(request, user_id)


def can_delete_user(target_user_id: Optional[uuid.UUID], user: Optional[User]) -> bool:
    """Users may close their own account; admins may remove anyone."""
    if user is None or target_user_id is None:
        return False
    return is_admin(user) or user.id == target_user_id
