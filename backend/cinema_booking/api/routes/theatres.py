"""
Theatre endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cinema_booking.db.session import get_db
from cinema_booking.schemas.showtime import TheatreCreate, TheatreResponse
from cinema_booking.services.showtime_service import create_theatre, get_theatre, list_theatres
from cinema_booking.core.security import get_current_user_id

router = APIRouter(prefix="/theatres", tags=["Theatres"])


@router.post("/", response_model=TheatreResponse, status_code=status.HTTP_201_CREATED)
async def create_theatre_endpoint(
    theatre_data: TheatreCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await create_theatre(db, theatre_data)


@router.get("/", response_model=list[TheatreResponse])
async def list_theatres_endpoint(db: AsyncSession = Depends(get_db)):
    return await list_theatres(db)


@router.get("/{theatre_id}", response_model=TheatreResponse)
async def get_theatre_endpoint(theatre_id: str, db: AsyncSession = Depends(get_db)):
    return await get_theatre(db, theatre_id)
