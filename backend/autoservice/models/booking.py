"""
Modello SQLAlchemy per le prenotazioni
Progetto: Autoservice (Gestione Ordini di Lavoro)

Una prenotazione genera al massimo un ordine di lavoro.
"""

import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autoservice.models import Base
from autoservice.models.mixins import IntegerIDMixin, TimestampMixin

if TYPE_CHECKING:
    from autoservice.models.client import Car
    from autoservice.models.work_order import WorkOrder


class Booking(Base, IntegerIDMixin, TimestampMixin):
    """
    Prenotazione di un intervento.

    Attributes:
        id: Primary key intera
        client_id: Cliente che ha prenotato
        car_id: Auto oggetto dell'intervento
        scheduled_at: Data/ora dell'appuntamento
        note: Nota sul servizio richiesto
        status: pending | confirmed | cancelled | done

    Relationships:
        car: Auto prenotata
        work_order: Ordine di lavoro generato (0..1)
    """

    __tablename__ = "bookings"

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Cliente che ha prenotato",
    )

    car_id: Mapped[int] = mapped_column(
        ForeignKey("cars.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Auto oggetto dell'intervento",
    )

    scheduled_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        doc="Data/ora dell'appuntamento",
    )

    note: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Nota sul servizio richiesto",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="Stato della prenotazione",
    )

    car: Mapped["Car"] = relationship(
        "Car",
        back_populates="bookings",
        lazy="noload",
    )

    work_order: Mapped[Optional["WorkOrder"]] = relationship(
        "WorkOrder",
        back_populates="booking",
        uselist=False,
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_bookings_scheduled_at", "scheduled_at"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled', 'done')",
            name="ck_bookings_status",
        ),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, status={self.status}, car_id={self.car_id})>"
