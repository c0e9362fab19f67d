from __future__ import annotations

from fastapi import APIRouter, Depends

from finance_tracker.api.deps import get_currency_service, get_current_user_id
from finance_tracker.schemas.common import DataResponse
from finance_tracker.schemas.currency import CurrencyDTO
from finance_tracker.services import CurrencyService

router = APIRouter(prefix="/currencies", tags=["reference"])


@router.get("", response_model=DataResponse[list[CurrencyDTO]])
def list_currencies(
    service: CurrencyService = Depends(get_currency_service),
    user_id: str = Depends(get_current_user_id),
) -> DataResponse[list[CurrencyDTO]]:
    return DataResponse(data=service.list_active())
