"""
Tests for the authorization predicates.
"""

import uuid

from property_exchange.models.listing import Listing
from property_exchange.models.request import ListingRequest
from property_exchange.models.user import User, UserRole
from property_exchange.services import access_policy


def make_user(role: UserRole = UserRole.USER) -> User:
    return User(id=uuid.uuid4(), email="someone@example.com", full_name="Someone", role=role)


class TestOwnership:

    def test_is_owner(self):
        owner = make_user()
        listing = Listing(id=uuid.uuid4(), owner_id=owner.id)

        assert access_policy.is_owner(listing, owner.id)
        assert not access_policy.is_owner(listing, uuid.uuid4())

    def test_seller_and_requester(self):
        seller, requester = make_user(), make_user()
        request = ListingRequest(id=uuid.uuid4(), seller_id=seller.id, requester_id=requester.id)

        assert access_policy.is_seller(request, seller.id)
        assert not access_policy.is_seller(request, requester.id)
        assert access_policy.is_requester(request, requester.id)
        assert not access_policy.is_requester(request, seller.id)

    def test_none_is_never_allowed(self):
        user = make_user(UserRole.ADMIN)
        listing = Listing(id=uuid.uuid4(), owner_id=user.id)

        assert not access_policy.is_owner(None, user.id)
        assert not access_policy.is_owner(listing, None)
        assert not access_policy.is_seller(None, user.id)
        assert not access_policy.is_requester(None, user.id)
        assert not access_policy.is_admin(None)
        assert not access_policy.can_manage_listing(listing, None)
        assert not access_policy.can_view_request(None, user.id)
        assert not access_policy.can_delete_user(None, user)
        assert not access_policy.can_delete_user(user.id, None)


class TestCompositeRules:

    def test_admin_manages_any_listing(self):
        admin = make_user(UserRole.ADMIN)
        listing = Listing(id=uuid.uuid4(), owner_id=uuid.uuid4())

        assert access_policy.can_manage_listing(listing, admin)
        assert not access_policy.can_manage_listing(listing, make_user())

    def test_request_visible_to_both_parties_only(self):
        seller, requester = make_user(), make_user()
        request = ListingRequest(id=uuid.uuid4(), seller_id=seller.id, requester_id=requester.id)

        assert access_policy.can_view_request(request, seller.id)
        assert access_policy.can_view_request(request, requester.id)
        assert not access_policy.can_view_request(request, uuid.uuid4())

    def test_delete_user_self_or_admin(self):
        user = make_user()

        assert access_policy.can_delete_user(user.id, user)
        assert not access_policy.can_delete_user(uuid.uuid4(), user)
        assert access_policy.can_delete_user(user.id, make_user(UserRole.ADMIN))
