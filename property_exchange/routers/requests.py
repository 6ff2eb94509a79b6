"""
Request endpoints: the requester and seller views and the seller's accept/reject actions.
"""

from fastapi import APIRouter, Depends, status
from typing import List
from uuid import UUID

from property_exchange.models.user import User
from property_exchange.schemas.request import RequestResponse
from property_exchange.schemas.transaction import TransactionResponse
from property_exchange.services.error_handler import get_error_responses
from property_exchange.services.request_workflow import RequestWorkflowService
from property_exchange.utils.dependencies import get_current_user, get_workflow_service


router = APIRouter(prefix="/requests", tags=["Requests"])


@router.get(
    "/mine",
    response_model=List[RequestResponse],
    summary="My requests",
    description="Requests the caller has made, newest first, in any status.",
    responses=get_error_responses(401)
)
async def list_my_requests(
    current_user: User = Depends(get_current_user),
    workflow: RequestWorkflowService = Depends(get_workflow_service)
) -> List[RequestResponse]:
    requests = await workflow.list_my_requests(current_user)
    return [RequestResponse.model_validate(r) for r in requests]


@router.get(
    "/incoming",
    response_model=List[RequestResponse],
    summary="Incoming requests",
    description="Pending requests on the caller's listings, newest first.",
    responses=get_error_responses(401)
)
async def list_incoming_requests(
    current_user: User = Depends(get_current_user),
    workflow: RequestWorkflowService = Depends(get_workflow_service)
) -> List[RequestResponse]:
    requests = await workflow.list_incoming_requests(current_user)
    return [RequestResponse.model_validate(r) for r in requests]


@router.get(
    "/{request_id}",
    response_model=RequestResponse,
    summary="Get request",
    responses=get_error_responses(401, 403, 404)
)
async def get_request(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    workflow: RequestWorkflowService = Depends(get_workflow_service)
) -> RequestResponse:
    request = await workflow.get_request(request_id, current_user)
    return RequestResponse.model_validate(request)


@router.post(
    "/{request_id}/accept",
    response_model=TransactionResponse,
    status_code=status.HTTP_200_OK,
    summary="Accept request",
    description="Accept a pending request. The listing is closed, a transaction is recorded "
                "and every other pending request on the listing is rejected.",
    responses=get_error_responses(401, 403, 404, 409)
)
async def accept_request(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    workflow: RequestWorkflowService = Depends(get_workflow_service)
) -> TransactionResponse:
    """
    Accept a request as the seller.

    Raises:
        ForbiddenError: Caller is not the seller
        AlreadyResolvedError: Request was already accepted or rejected
        NotAvailableError: Listing already closed
        ConflictError: Listing changed concurrently; re-fetch before retrying
    """
    transaction = await workflow.accept(request_id, current_user)
    return TransactionResponse.model_validate(transaction)


@router.post(
    "/{request_id}/reject",
    response_model=RequestResponse,
    status_code=status.HTTP_200_OK,
    summary="Reject request",
    responses=get_error_responses(401, 403, 404, 409)
)
async def reject_request(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    workflow: RequestWorkflowService = Depends(get_workflow_service)
) -> RequestResponse:
    request = await workflow.reject(request_id, current_user)
    return RequestResponse.model_validate(request)
