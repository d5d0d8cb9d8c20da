"""
Router FastAPI per le Prenotazioni
Progetto: Autoservice (Gestione Ordini di Lavoro)
"""

from typing import List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from autoservice.core.database import get_db
from autoservice.schemas.booking import BookingCreate, BookingRead, BookingStatusUpdate
from autoservice.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["Prenotazioni"])


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    db: AsyncSession = Depends(get_db),
):
    """Registra una nuova prenotazione."""
    booking = await BookingService.create(db, data)
    await db.commit()
    return booking


@router.get("", response_model=List[BookingRead])
async def list_bookings(db: AsyncSession = Depends(get_db)):
    """Elenco delle prenotazioni, più recenti prima."""
    return await BookingService.get_all(db)


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_db),
):
    """Recupera il dettaglio di una prenotazione."""
    return await BookingService.get_by_id(db, booking_id)


@router.patch("/{booking_id}/status", response_model=BookingRead)
async def change_booking_status(
    data: BookingStatusUpdate,
    booking_id: int = Path(..., gt=0),
    db: AsyncSession = Depends(get_db),
):
    """Cambia lo stato di una prenotazione."""
    booking = await BookingService.change_status(db, booking_id, data)
    await db.commit()
    return booking
