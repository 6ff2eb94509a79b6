"""
Transaction history endpoints for buyers, renters and owners.
"""

from fastapi import APIRouter, Depends
from typing import List

from property_exchange.models.user import User
from property_exchange.schemas.transaction import TransactionResponse
from property_exchange.services.error_handler import get_error_responses
from property_exchange.services.request_workflow import RequestWorkflowService
from property_exchange.utils.dependencies import get_current_user, get_workflow_service


router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get(
    "/purchases",
    response_model=List[TransactionResponse],
    summary="Properties I bought",
    responses=get_error_responses(401)
)
async def list_purchases(
    current_user: User = Depends(get_current_user),
    workflow: RequestWorkflowService = Depends(get_workflow_service)
) -> List[TransactionResponse]:
    return [TransactionResponse.model_validate(t) for t in await workflow.list_purchases(current_user)]


@router.get(
    "/rentals",
    response_model=List[TransactionResponse],
    summary="Properties I rented",
    responses=get_error_responses(401)
)
async def list_rentals(
    current_user: User = Depends(get_current_user),
    workflow: RequestWorkflowService = Depends(get_workflow_service)
) -> List[TransactionResponse]:
    return [TransactionResponse.model_validate(t) for t in await workflow.list_rentals(current_user)]


@router.get(
    "/sold",
    response_model=List[TransactionResponse],
    summary="My listings that sold",
    responses=get_error_responses(401)
)
async def list_sold(
    current_user: User = Depends(get_current_user),
    workflow: RequestWorkflowService = Depends(get_workflow_service)
) -> List[TransactionResponse]:
    return [TransactionResponse.model_validate(t) for t in await workflow.list_sold(current_user)]


@router.get(
    "/rented",
    response_model=List[TransactionResponse],
    summary="My listings that were rented out",
    responses=get_error_responses(401)
)
async def list_rented(
    current_user: User = Depends(get_current_user),
    workflow: RequestWorkflowService = Depends(get_workflow_service)
) -> List[TransactionResponse]:
    return [TransactionResponse.model_validate(t) for t in await workflow.list_rented(current_user)]
