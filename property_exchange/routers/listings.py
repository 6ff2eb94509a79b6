"""
Listing endpoints: creation with an optional image, lookup, deletion and request submission.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import ValidationError as PydanticValidationError
from decimal import Decimal
from typing import Optional
from uuid import UUID

from property_exchange.models.listing import ListingKind
from property_exchange.models.user import User
from property_exchange.schemas.listing import ListingCreate, ListingResponse
from property_exchange.schemas.request import RequestCreate, RequestContact, RequestResponse
from property_exchange.schemas.transaction import CascadeReportResponse
from property_exchange.services.error_handler import get_error_responses
from property_exchange.services.listing import ListingService
from property_exchange.services.request_workflow import RequestWorkflowService
from property_exchange.utils.dependencies import (
    get_current_user,
    get_listing_service,
    get_workflow_service
)
from property_exchange.utils.exceptions import ValidationError


router = APIRouter(prefix="/listings", tags=["Listings"])


@router.post(
    "",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create listing",
    description="Create a listing for sale or rent. An image (JPEG, PNG or WebP) may be attached.",
    responses=get_error_responses(401, 422)
)
async def create_listing(
    title: str = Form(...),
    address: str = Form(...),
    price: Decimal = Form(...),
    kind: ListingKind = Form(...),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None, description="Listing image"),
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    """
    Create a new listing.

    Args:
        title, address, price, kind, description: Listing fields
        image: Optional image upload
        current_user: Listing owner
        listing_service: Listing service instance

    Returns:
        Created listing
    """
    try:
        listing_data = ListingCreate(
            title=title,
            address=address,
            price=price,
            kind=kind,
            description=description
        )
    except PydanticValidationError as e:
        field_errors = [
            {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError("Invalid listing data", field_errors)

    content = None
    filename = None
    if image is not None and image.filename:
        content = await image.read()
        filename = image.filename

    listing = await listing_service.create_listing(listing_data, current_user, content, filename)
    return listing_service.to_response(listing)


@router.get(
    "/{listing_id}",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    summary="Get listing",
    responses=get_error_responses(404)
)
async def get_listing(
    listing_id: UUID,
    listing_service: ListingService = Depends(get_listing_service)
) -> ListingResponse:
    listing = await listing_service.get_listing(listing_id)
    return listing_service.to_response(listing)


@router.delete(
    "/{listing_id}",
    response_model=CascadeReportResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete listing",
    description="Delete a listing together with its requests, transactions and favorites. "
                "Only the owner or an admin can delete.",
    responses=get_error_responses(401, 403, 404, 409, 500)
)
async def delete_listing(
    listing_id: UUID,
    current_user: User = Depends(get_current_user),
    listing_service: ListingService = Depends(get_listing_service)
) -> CascadeReportResponse:
    report = await listing_service.delete_listing(listing_id, current_user)
    return CascadeReportResponse.model_validate(report)


@router.post(
    "/{listing_id}/requests",
    response_model=RequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request to buy or rent",
    description="Submit a buy request on a for-sale listing or a rent request on a for-rent listing.",
    responses=get_error_responses(400, 401, 409, 422)
)
async def submit_request(
    listing_id: UUID,
    request_data: RequestCreate,
    current_user: User = Depends(get_current_user),
    workflow: RequestWorkflowService = Depends(get_workflow_service)
) -> RequestResponse:
    """
    Submit a request on a listing.

    Raises:
        NotAvailableError: Listing missing or closed
        TypeMismatchError: Request type does not match the listing kind
        SelfDealingError: Caller owns the listing
        DuplicatePendingError: Caller already has a pending request on it
    """
    contact = RequestContact.model_validate(request_data.model_dump(exclude={"request_type"}))
    request = await workflow.submit(listing_id, current_user, request_data.request_type, contact)
    return RequestResponse.model_validate(request)
