"""cn_wallet REST API: balance and ledger of the authenticated wallet holder."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.actor import Actor
from src.cn_common.database import get_db_session
from src.cn_common.response import ApiResponse, success_response
from src.cn_gateway.auth.dependencies import get_current_actor
from src.cn_wallet.application.service import WalletApplicationService

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletApplicationService()


@router.get("/me")
async def get_wallet(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_wallet(db, str(actor.user_id))
    return success_response(data, request)


@router.get("/transactions")
async def list_transactions(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_transactions(db, str(actor.user_id), cursor, limit)
    return success_response(data, request)
