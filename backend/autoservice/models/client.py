"""
Modelli SQLAlchemy per le anagrafiche Client e Car
Progetto: Autoservice (Gestione Ordini di Lavoro)

Anagrafiche gestite da un modulo collaboratore: qui servono solo come
destinazione delle chiavi esterne di prenotazioni e ordini di lavoro.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autoservice.models import Base
from autoservice.models.mixins import IntegerIDMixin, TimestampMixin

if TYPE_CHECKING:
    from autoservice.models.booking import Booking


class Client(Base, IntegerIDMixin, TimestampMixin):
    """
    Cliente dell'officina.

    Attributes:
        id: Primary key intera
        full_name: Nome e cognome
        phone: Telefono (opzionale)
    """

    __tablename__ = "clients"

    full_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        doc="Nome e cognome del cliente",
    )

    phone: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        doc="Telefono del cliente",
    )

    cars: Mapped[List["Car"]] = relationship(
        "Car",
        back_populates="client",
        lazy="noload",
        doc="Auto del cliente",
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, full_name={self.full_name})>"


class Car(Base, IntegerIDMixin, TimestampMixin):
    """
    Auto di un cliente.

    Attributes:
        id: Primary key intera
        client_id: Cliente proprietario
        plate: Targa (univoca)
        brand: Marca
        model: Modello
    """

    __tablename__ = "cars"

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Cliente proprietario",
    )

    plate: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        doc="Targa",
    )

    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)

    model: Mapped[str | None] = mapped_column(String(100), nullable=True)

    client: Mapped["Client"] = relationship(
        "Client",
        back_populates="cars",
        lazy="noload",
    )

    bookings: Mapped[List["Booking"]] = relationship(
        "Booking",
        back_populates="car",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<Car(id={self.id}, plate={self.plate}, client_id={self.client_id})>"
