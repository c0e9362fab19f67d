from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Response

from finance_tracker.api.deps import get_current_user_id, get_transaction_service
from finance_tracker.core.errors import NotFound
from finance_tracker.schemas.common import DataResponse
from finance_tracker.schemas.transaction import (
    CreateTransactionCommand,
    GetTransactionsQuery,
    TransactionDTO,
    TransactionListDTO,
    UpdateTransactionCommand,
)
from finance_tracker.services import TransactionService

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListDTO)
def list_transactions(
    date_from: date | None = None,
    date_to: date | None = None,
    account_id: int | None = None,
    category_id: int | None = None,
    search: str | None = None,
    sort: str | None = None,
    page: int | None = None,
    limit: int | None = None,
    include_inactive: bool = False,
    service: TransactionService = Depends(get_transaction_service),
    user_id: str = Depends(get_current_user_id),
) -> TransactionListDTO:
    query = GetTransactionsQuery(
        date_from=date_from,
        date_to=date_to,
        account_id=account_id,
        category_id=category_id,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
        include_inactive=include_inactive,
    )
    return service.list(query, user_id)


@router.post("", response_model=DataResponse[TransactionDTO], status_code=201)
def create_transaction(
    payload: CreateTransactionCommand,
    service: TransactionService = Depends(get_transaction_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[TransactionDTO]:
    return DataResponse(data=service.create(payload, user_id))


@router.get("/{transaction_id}", response_model=DataResponse[TransactionDTO])
def get_transaction(
    transaction_id: int,
    service: TransactionService = Depends(get_transaction_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[TransactionDTO]:
    transaction = service.get_by_id(transaction_id, user_id)
    if transaction is None:
        raise NotFound("Transaction not found")
    return DataResponse(data=transaction)


@router.patch("/{transaction_id}", response_model=DataResponse[TransactionDTO])
def update_transaction(
    transaction_id: int,
    payload: UpdateTransactionCommand,
    service: TransactionService = Depends(get_transaction_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[TransactionDTO]:
    return DataResponse(data=service.update(transaction_id, payload, user_id))


@router.delete("/{transaction_id}", status_code=204, response_class=Response)
def delete_transaction(
    transaction_id: int,
    service: TransactionService = Depends(get_transaction_service),
    user_id: str = Depends(get_current_user_id),
) -> Response:
    service.delete(transaction_id, user_id)
    return Response(status_code=204)
