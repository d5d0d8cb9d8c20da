"""
Modello SQLAlchemy per il registro di audit
Progetto: Autoservice (Gestione Ordini di Lavoro)

Righe append-only: create solo come effetto di una modifica,
mai aggiornate né eliminate.
"""

from typing import Any, Dict

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from autoservice.models import Base
from autoservice.models.mixins import CreatedAtMixin, IntegerIDMixin


class AuditEntry(Base, IntegerIDMixin, CreatedAtMixin):
    """
    Evento di audit.

    Attributes:
        id: Primary key intera (definisce l'ordine cronologico)
        entity: Tipo di entità (es. 'work_order')
        entity_id: Id dell'entità
        action: Azione (create, status_change, add_work_item, ...)
        details: Dati strutturati dell'azione
        created_at: Data/ora dell'evento
    """

    __tablename__ = "audit_log"

    entity: Mapped[str] = mapped_column(String(50), nullable=False)

    entity_id: Mapped[int] = mapped_column(nullable=False)

    action: Mapped[str] = mapped_column(String(50), nullable=False)

    details: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    __table_args__ = (
        Index("ix_audit_log_entity", "entity", "entity_id"),
    )

    def __repr__(self) -> str:
        return f"<AuditEntry(id={self.id}, entity={self.entity}:{self.entity_id}, action={self.action})>"
