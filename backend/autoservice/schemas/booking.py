"""
Schemas Pydantic per le Prenotazioni
Progetto: Autoservice (Gestione Ordini di Lavoro)
"""

import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookingStatus(str, Enum):
    """Enum che definisce i possibili stati di una prenotazione."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    DONE = "done"


class BookingCreate(BaseModel):
    """
    Schema per la creazione di una prenotazione.

    Attributes:
        client_id: Cliente che prenota
        car_id: Auto del cliente
        scheduled_at: Data/ora dell'appuntamento (ISO-8601)
        note: Nota sul servizio richiesto
    """
    client_id: int = Field(..., gt=0)
    car_id: int = Field(..., gt=0)
    scheduled_at: datetime.datetime
    note: Optional[str] = Field(None, max_length=5000)

    @field_validator("note")
    @classmethod
    def normalize_note(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None


class BookingStatusUpdate(BaseModel):
    """Schema per il cambio di stato di una prenotazione."""
    status: BookingStatus


class BookingRead(BaseModel):
    """Schema per la lettura di una prenotazione."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    car_id: int
    scheduled_at: datetime.datetime
    note: Optional[str]
    status: BookingStatus
    created_at: datetime.datetime
