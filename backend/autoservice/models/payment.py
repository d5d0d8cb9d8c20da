"""
Modello SQLAlchemy per i Pagamenti
Progetto: Autoservice (Gestione Ordini di Lavoro)

Un pagamento è registrato su un ordine di lavoro; solo i pagamenti
con stato 'paid' concorrono a WorkOrder.paid_amount.
"""

from __future__ import annotations

import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autoservice.models import Base
from autoservice.models.mixins import CreatedAtMixin, IntegerIDMixin, utcnow

if TYPE_CHECKING:
    from autoservice.models.work_order import WorkOrder


class Payment(Base, IntegerIDMixin, CreatedAtMixin):
    """
    Modello per i pagamenti di un ordine di lavoro.

    Attributes:
        id: Primary key intera
        work_order_id: Ordine di lavoro pagato
        amount: Importo (> 0)
        method: Metodo di pagamento (cash, card, transfer)
        status: Stato del pagamento (default 'paid')
        paid_at: Data/ora dell'incasso
        idempotency_key: Chiave per deduplicare i retry
        created_at: Data/ora creazione record

    Relationships:
        work_order: Ordine di lavoro pagato
    """

    __tablename__ = "payments"

    # ------------------------------------------------------------
    # Colonna Relazione - Ordine di lavoro
    # ------------------------------------------------------------
    work_order_id: Mapped[int] = mapped_column(
        ForeignKey("work_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Ordine di lavoro pagato",
    )

    # ------------------------------------------------------------
    # Colonne Dati
    # ------------------------------------------------------------
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        doc="Importo del pagamento",
    )

    method: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="cash",
        doc="Metodo di pagamento",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="paid",
        doc="Stato del pagamento: solo 'paid' conta per paid_amount",
    )

    paid_at: Mapped[Optional[datetime.datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=utcnow,
        doc="Data/ora dell'incasso",
    )

    idempotency_key: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        doc="Chiave fornita dal client per deduplicare i retry",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    work_order: Mapped["WorkOrder"] = relationship(
        "WorkOrder",
        back_populates="payments",
        lazy="noload",
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount"),
        CheckConstraint(
            "method IN ('cash', 'card', 'transfer')",
            name="ck_payments_method",
        ),
        UniqueConstraint("work_order_id", "idempotency_key", name="uq_payments_idempotency"),
    )

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, work_order_id={self.work_order_id}, "
            f"amount={self.amount}, status={self.status})>"
        )
