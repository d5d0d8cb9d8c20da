"""
Mixin SQLAlchemy per modelli
Progetto: Autoservice (Gestione Ordini di Lavoro)

Mixin riutilizzabili per aggiungere funzionalità comuni ai modelli.
"""

import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy import event
from sqlalchemy.orm import Mapped, mapped_column, Session
from sqlalchemy.sql import func


def utcnow() -> datetime.datetime:
    """Data/ora corrente in UTC."""
    return datetime.datetime.now(datetime.timezone.utc)


class IntegerIDMixin:
    """
    Mixin per ID intero autoincrementale.

    L'ordine crescente degli id coincide con l'ordine di inserimento:
    le liste dell'ordine di lavoro e l'audit sono ordinati per id.

    Usage:
        class MyModel(Base, IntegerIDMixin):
            __tablename__ = "my_table"
            ...
    """

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Primary key intera",
    )


class CreatedAtMixin:
    """
    Mixin per il solo timestamp di creazione.

    Usato dalle righe immutabili (voci, pagamenti, audit).
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        doc="Data/ora di creazione del record",
    )


class TimestampMixin(CreatedAtMixin):
    """
    Mixin per gestione automatica timestamp creazione e aggiornamento.

    Aggiunge i campi:
    - created_at: data/ora di creazione record (impostato automaticamente)
    - updated_at: data/ora ultimo aggiornamento (aggiornato automaticamente)

    Usage:
        class MyModel(Base, TimestampMixin):
            __tablename__ = "my_table"
            ...
    """

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        doc="Data/ora ultimo aggiornamento del record",
    )


# ------------------------------------------------------------
# Event Listeners
# ------------------------------------------------------------
@event.listens_for(Session, "before_flush")
def update_timestamp(session: Session, flush_context, instances) -> None:
    """
    Event listener per aggiornare automaticamente il campo updated_at.

    Questo listener viene eseguito prima di ogni flush e aggiorna il campo
    updated_at di tutti gli oggetti modificati (dirty) e nuovi (new).

    Args:
        session: Sessione SQLAlchemy
        flush_context: Contesto del flush
        instances: Oggetti instances (non usato)
    """
    now = utcnow()

    for obj in session.dirty:
        if isinstance(obj, TimestampMixin):
            # Solo se l'oggetto è stato effettivamente modificato
            if session.is_modified(obj, include_collections=False):
                obj.updated_at = now

    for obj in session.new:
        if isinstance(obj, TimestampMixin):
            obj.updated_at = now
