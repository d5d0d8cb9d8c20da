"""
Modelli SQLAlchemy per gli Ordini di Lavoro
Progetto: Autoservice (Gestione Ordini di Lavoro)

 Contiene:
- WorkOrder: Ordine di lavoro generato da una prenotazione
- WorkItem: Voci di manodopera associate all'ordine
- MaterialItem: Voci di materiale associate all'ordine
"""


from __future__ import annotations
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autoservice.models import Base
from autoservice.models.mixins import CreatedAtMixin, IntegerIDMixin, TimestampMixin

# Import per type hinting relazioni (evita circular import)
if TYPE_CHECKING:
    from autoservice.models.booking import Booking
    from autoservice.models.payment import Payment


# Gli stati sono definiti in autoservice.schemas.work_order.WorkOrderStatus


class WorkOrder(Base, IntegerIDMixin, TimestampMixin):
    """
    Modello per gli ordini di lavoro (work orders).

    Creato una sola volta a partire da una prenotazione: client_id e car_id
    sono copiati dalla prenotazione e non cambiano più.

    Attributes:
        id: Primary key intera
        booking_id: Prenotazione di origine (univoca)
        client_id: Cliente (copiato dalla prenotazione)
        car_id: Auto (copiata dalla prenotazione)
        description: Descrizione del lavoro
        status: created, in_progress, waiting_approval, ready, closed, cancelled
        total_amount: Somma delle estensioni di voci di lavoro e materiali
        paid_amount: Somma dei pagamenti con stato 'paid'
        created_at: Data/ora creazione record
        updated_at: Data/ora ultimo aggiornamento

    I due totali sono ricalcolati da zero dopo ogni modifica
    (vedi autoservice.services.totals), mai incrementati.

    States (State Machine):
        created → in_progress → waiting_approval → ready → closed
            ↓          ↓               ↓             ↓
                            cancelled
    """

    __tablename__ = "work_orders"

    # ------------------------------------------------------------
    # Colonne Relazioni
    # ------------------------------------------------------------
    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
        doc="Prenotazione di origine (al massimo un ordine per prenotazione)",
    )

    client_id: Mapped[int] = mapped_column(
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        doc="Cliente, copiato dalla prenotazione",
    )

    car_id: Mapped[int] = mapped_column(
        ForeignKey("cars.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        doc="Auto, copiata dalla prenotazione",
    )

    # ------------------------------------------------------------
    # Colonne Stato e Dati
    # ------------------------------------------------------------
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Descrizione del lavoro",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="created",
        doc="Stato corrente dell'ordine di lavoro",
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Totale addebitato (lavori + materiali)",
    )

    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Totale incassato (pagamenti 'paid')",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    booking: Mapped["Booking"] = relationship(
        "Booking",
        back_populates="work_order",
        lazy="noload",
    )

    work_items: Mapped[List["WorkItem"]] = relationship(
        "WorkItem",
        back_populates="work_order",
        cascade="all, delete-orphan",
        lazy="noload",
        order_by="WorkItem.id",
    )

    material_items: Mapped[List["MaterialItem"]] = relationship(
        "MaterialItem",
        back_populates="work_order",
        cascade="all, delete-orphan",
        lazy="noload",
        order_by="MaterialItem.id",
    )

    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="work_order",
        cascade="all, delete-orphan",
        lazy="noload",
        order_by="Payment.id",
    )

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        Index("ix_work_orders_status", "status"),
        CheckConstraint(
            "status IN ('created', 'in_progress', 'waiting_approval', 'ready', 'closed', 'cancelled')",
            name="ck_work_orders_status",
        ),
        CheckConstraint("total_amount >= 0", name="ck_work_orders_total_amount"),
        CheckConstraint("paid_amount >= 0", name="ck_work_orders_paid_amount"),
    )

    @property
    def debt(self) -> Decimal:
        """Importo ancora da incassare."""
        return (self.total_amount or Decimal("0")) - (self.paid_amount or Decimal("0"))

    def __repr__(self) -> str:
        return (
            f"<WorkOrder(id={self.id}, booking_id={self.booking_id}, status={self.status}, "
            f"total={self.total_amount}, paid={self.paid_amount})>"
        )


class _LineItemColumns:
    """Colonne comuni a voci di lavoro e materiali."""

    name: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        doc="Descrizione della voce",
    )

    qty: Mapped[Decimal] = mapped_column(
        Numeric(12, 3),
        nullable=False,
        default=Decimal("1"),
        doc="Quantità (ore per la manodopera, pezzi/litri per i materiali)",
    )

    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Prezzo unitario",
    )

    idempotency_key: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        doc="Chiave fornita dal client per deduplicare i retry",
    )

    @hybrid_property
    def line_total(self) -> Decimal:
        """
        Estensione della riga (qty * unit_price).

        Returns:
            Decimal: Quantità * Prezzo unitario
        """
        return self.qty * self.unit_price


class WorkItem(Base, IntegerIDMixin, CreatedAtMixin, _LineItemColumns):
    """
    Voce di manodopera di un ordine di lavoro.

    Immutabile dopo la creazione.
    """

    __tablename__ = "work_items"

    work_order_id: Mapped[int] = mapped_column(
        ForeignKey("work_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Ordine di lavoro padre",
    )

    work_order: Mapped["WorkOrder"] = relationship(
        "WorkOrder",
        back_populates="work_items",
        lazy="noload",
    )

    __table_args__ = (
        CheckConstraint("qty > 0", name="ck_work_items_qty"),
        CheckConstraint("unit_price >= 0", name="ck_work_items_unit_price"),
        UniqueConstraint("work_order_id", "idempotency_key", name="uq_work_items_idempotency"),
    )

    def __repr__(self) -> str:
        return f"<WorkItem(id={self.id}, work_order_id={self.work_order_id}, name={self.name[:30]})>"


class MaterialItem(Base, IntegerIDMixin, CreatedAtMixin, _LineItemColumns):
    """
    Voce di materiale di un ordine di lavoro.

    Può riferire una voce di catalogo (material_id). Immutabile dopo la creazione.
    """

    __tablename__ = "material_items"

    work_order_id: Mapped[int] = mapped_column(
        ForeignKey("work_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Ordine di lavoro padre",
    )

    material_id: Mapped[Optional[int]] = mapped_column(
        nullable=True,
        doc="Riferimento opzionale al catalogo materiali",
    )

    work_order: Mapped["WorkOrder"] = relationship(
        "WorkOrder",
        back_populates="material_items",
        lazy="noload",
    )

    __table_args__ = (
        CheckConstraint("qty > 0", name="ck_material_items_qty"),
        CheckConstraint("unit_price >= 0", name="ck_material_items_unit_price"),
        UniqueConstraint("work_order_id", "idempotency_key", name="uq_material_items_idempotency"),
    )

    def __repr__(self) -> str:
        return f"<MaterialItem(id={self.id}, work_order_id={self.work_order_id}, name={self.name[:30]})>"
