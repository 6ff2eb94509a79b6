"""Listing availability state machine.

Availability only moves forward: AVAILABLE -> SOLD for sale listings,
AVAILABLE -> RENTED for rental listings. This module performs no I/O; the
caller persists the new state in the same commit as the request and
transaction writes.
"""

from property_exchange.models.listing import Availability, Listing, ListingKind
from property_exchange.models.request import RequestType
from property_exchange.models.transaction import TransactionType
from property_exchange.utils.exceptions import InvalidTransitionError


# ---------------------------------------------------------------------------
# Transition map: from_availability -> {outcome: required listing kind}
# ---------------------------------------------------------------------------

TRANSITION_MAP: dict[Availability, dict[Availability, ListingKind]] = {
    Availability.AVAILABLE: {
        Availability.SOLD: ListingKind.FOR_SALE,
        Availability.RENTED: ListingKind.FOR_RENT,
    },
}

TERMINAL_STATES: set[Availability] = {Availability.SOLD, Availability.RENTED}

REQUEST_TYPE_FOR_KIND: dict[ListingKind, RequestType] = {
    ListingKind.FOR_SALE: RequestType.BUY,
    ListingKind.FOR_RENT: RequestType.RENT,
}

OUTCOME_FOR_REQUEST_TYPE: dict[RequestType, Availability] = {
    RequestType.BUY: Availability.SOLD,
    RequestType.RENT: Availability.RENTED,
}

TRANSACTION_TYPE_FOR_OUTCOME: dict[Availability, TransactionType] = {
    Availability.SOLD: TransactionType.SOLD,
    Availability.RENTED: TransactionType.RENTED,
}


def request_type_for(kind: ListingKind) -> RequestType:
    """The only request type a listing of this kind accepts."""
    return REQUEST_TYPE_FOR_KIND[kind]


def outcome_for(request_type: RequestType) -> Availability:
    """Availability a listing ends in when a request of this type is accepted."""
    return OUTCOME_FOR_REQUEST_TYPE[request_type]


def validate_transition(listing: Listing, outcome: Availability) -> None:
    """Raise InvalidTransitionError unless ``listing`` may move to ``outcome``."""
    current = listing.availability

    allowed = TRANSITION_MAP.get(current)
    if allowed is None:
        raise InvalidTransitionError(
            current.value,
            outcome.value,
            f"No transitions allowed from {current.value}",
        )

    required_kind = allowed.get(outcome)
    if required_kind is None:
        raise InvalidTransitionError(
            current.value,
            outcome.value,
            f"Transition from {current.value} to {outcome.value} is not allowed",
        )

    if listing.kind != required_kind:
        raise InvalidTransitionError(
            current.value,
            outcome.value,
            f"A {listing.kind.value} listing cannot become {outcome.value}",
        )


def can_transition(listing: Listing, outcome: Availability) -> bool:
    try:
        validate_transition(listing, outcome)
    except InvalidTransitionError:
        return False
    return True


def transition(listing: Listing, outcome: Availability) -> Listing:
    """Move ``listing`` to ``outcome`` in memory and return it."""
    validate_transition(listing, outcome)
    listing.availability = outcome
    return listing
