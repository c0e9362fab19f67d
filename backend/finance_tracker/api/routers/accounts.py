from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from finance_tracker.api.deps import get_account_service, get_current_user_id
from finance_tracker.core.errors import NotFound
from finance_tracker.schemas.account import AccountDTO, CreateAccountCommand, UpdateAccountCommand
from finance_tracker.schemas.common import DataResponse
from finance_tracker.services import AccountService

router = APIRouter(prefix="/accounts", tags=["accounts"])


@router.get("", response_model=DataResponse[list[AccountDTO]])
def list_accounts(
    include_inactive: bool = False,
    service: AccountService = Depends(get_account_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[list[AccountDTO]]:
    return DataResponse(data=service.list_by_user(user_id, include_inactive=include_inactive))


@router.post("", response_model=DataResponse[AccountDTO], status_code=201)
def create_account(
    payload: CreateAccountCommand,
    service: AccountService = Depends(get_account_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[AccountDTO]:
    return DataResponse(data=service.create(payload, user_id))


@router.get("/{account_id}", response_model=DataResponse[AccountDTO])
def get_account(
    account_id: int,
    service: AccountService = Depends(get_account_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[AccountDTO]:
    account = service.get_by_id(account_id, user_id)
    if account is None:
        raise NotFound("Account not found")
    return DataResponse(data=account)


@router.patch("/{account_id}", response_model=DataResponse[AccountDTO])
def update_account(
    account_id: int,
    payload: UpdateAccountCommand,
    service: AccountService = Depends(get_account_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[AccountDTO]:
    return DataResponse(data=service.update(account_id, payload, user_id))


@router.delete("/{account_id}", status_code=204, response_class=Response)
def delete_account(
    account_id: int,
    service: AccountService = Depends(get_account_service),
    user_id: str = Depends(get_current_user_id),
) -> Response:
    service.delete(account_id, user_id)
    return Response(status_code=204)
