"""cn_reservation REST API: create/list for students, review for canteen staff."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cn_common.actor import Actor
from src.cn_common.database import get_db_session
from src.cn_common.response import ApiResponse, success_response
from src.cn_gateway.auth.dependencies import get_optional_actor, require_admin
from src.cn_reservation.application.schemas import (
    CreateReservationRequest,
    SetStatusRequest,
)
from src.cn_reservation.application.service import ReservationApplicationService

router = APIRouter(prefix="/reservations", tags=["reservations"])

_service = ReservationApplicationService()


@router.post("", status_code=201)
async def create_reservation(
    body: CreateReservationRequest,
    actor: Annotated[Actor | None, Depends(get_optional_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_reservation(db, body, actor)
    return success_response(data, request)


@router.get("/mine")
async def list_mine(
    actor: Annotated[Actor | None, Depends(get_optional_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    student: str | None = Query(None, description="Guest lookup by student name"),
) -> ApiResponse:
    data = await _service.list_mine(db, actor, student)
    return success_response(data, request)


@router.get("/admin")
async def list_admin(
    _admin: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: str | None = Query(None, description="Filter by reservation status"),
) -> ApiResponse:
    data = await _service.list_admin(db, status)
    return success_response(data, request)


@router.patch("/admin/{reservation_id}")
async def set_status(
    reservation_id: str,
    body: SetStatusRequest,
    admin: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.set_status(db, reservation_id, body.status, admin)
    return success_response(data, request)
