"""
Service Layer per le Prenotazioni
Progetto: Autoservice (Gestione Ordini di Lavoro)

Lookup delle prenotazioni usato dagli ordini di lavoro e operazioni
minime esposte dall'API prenotazioni.
"""

import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autoservice.core.exceptions import BusinessValidationError, NotFoundError
from autoservice.models import Booking, Car, Client
from autoservice.schemas.booking import BookingCreate, BookingStatus, BookingStatusUpdate

logger = logging.getLogger(__name__)


class BookingService:
    @staticmethod
    async def get_by_id(db: AsyncSession, booking_id: int) -> Booking:
        """
        Recupera una prenotazione tramite ID.

        Raises:
            NotFoundError: Se la prenotazione non esiste
        """
        booking = await db.get(Booking, booking_id)
        if not booking:
            logger.warning("Prenotazione non trovata: %s", booking_id)
            raise NotFoundError(
                f"Prenotazione con ID {booking_id} non trovata",
                error_code="BOOKING_NOT_FOUND",
            )
        return booking

    @staticmethod
    async def get_all(db: AsyncSession) -> Sequence[Booking]:
        """Elenco delle prenotazioni, più recenti prima."""
        result = await db.execute(select(Booking).order_by(Booking.id.desc()))
        return result.scalars().all()

    @staticmethod
    async def create(db: AsyncSession, data: BookingCreate) -> Booking:
        """
        Crea una prenotazione per un'auto del cliente.

        Raises:
            NotFoundError: Se il cliente o l'auto non esistono
            BusinessValidationError: Se l'auto non appartiene al cliente
        """
        client = await db.get(Client, data.client_id)
        if not client:
            raise NotFoundError(f"Cliente con ID {data.client_id} non trovato")

        car = await db.get(Car, data.car_id)
        if not car:
            raise NotFoundError(f"Auto con ID {data.car_id} non trovata")

        if car.client_id != data.client_id:
            logger.warning("Auto %s non appartiene al cliente %s", data.car_id, data.client_id)
            raise BusinessValidationError("L'auto non appartiene al cliente selezionato")

        booking = Booking(
            client_id=data.client_id,
            car_id=data.car_id,
            scheduled_at=data.scheduled_at,
            note=data.note,
            status=BookingStatus.PENDING.value,
        )
        db.add(booking)
        await db.flush()

        logger.info("Creata prenotazione: %s", booking.id)
        return booking

    @staticmethod
    async def change_status(
        db: AsyncSession, booking_id: int, data: BookingStatusUpdate
    ) -> Booking:
        """Cambia lo stato di una prenotazione."""
        booking = await BookingService.get_by_id(db, booking_id)
        booking.status = data.status.value
        await db.flush()

        logger.info("Cambiato stato prenotazione %s: %s", booking_id, data.status.value)
        return booking
