"""
Calcolo dei totali degli Ordini di Lavoro
Progetto: Autoservice (Gestione Ordini di Lavoro)

Funzioni pure di aggregazione (Decimal, nessun float) e ricalcolo
dei totali memorizzati su WorkOrder.

Il ricalcolo rilegge sempre tutte le righe dell'ordine e sovrascrive
il totale: ripeterlo senza modifiche intermedie dà lo stesso risultato,
e due ricalcoli concorrenti convergono sul valore corretto. Ogni ricalcolo
aggiorna updated_at dell'ordine, anche quando il valore non cambia.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autoservice.models import MaterialItem, Payment, WorkItem, WorkOrder
from autoservice.models.mixins import utcnow
from autoservice.schemas.work_order import PaymentStatus, quantize_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


# ------------------------------------------------------------
# Funzioni pure
# ------------------------------------------------------------

def to_decimal(value: Any) -> Decimal:
    """Converte un valore numerico in Decimal senza passare da float."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def line_extension(qty: Any, unit_price: Any) -> Decimal:
    """Estensione di una riga: qty * unit_price."""
    return to_decimal(qty) * to_decimal(unit_price)


def compute_total(lines: Iterable[Tuple[Decimal, Decimal]]) -> Decimal:
    """
    Somma le estensioni di un insieme di righe (qty, unit_price).

    Returns:
        Decimal: Totale arrotondato a due decimali
    """
    total = sum((line_extension(qty, price) for qty, price in lines), ZERO)
    return quantize_money(total)


def compute_paid(payments: Iterable[Tuple[Decimal, str]]) -> Decimal:
    """
    Somma gli importi dei pagamenti (amount, status) con stato 'paid'.

    I pagamenti in qualsiasi altro stato non contribuiscono.
    """
    paid = sum(
        (to_decimal(amount) for amount, status in payments if status == PaymentStatus.PAID.value),
        ZERO,
    )
    return quantize_money(paid)


# ------------------------------------------------------------
# Ricalcolo su database
# ------------------------------------------------------------

async def recompute_total(db: AsyncSession, work_order: WorkOrder) -> Decimal:
    """
    Ricalcola total_amount da tutte le voci di lavoro e materiale dell'ordine.

    Le righe pendenti devono essere già state inviate al database (flush).
    """
    work_rows = await db.execute(
        select(WorkItem.qty, WorkItem.unit_price).where(WorkItem.work_order_id == work_order.id)
    )
    material_rows = await db.execute(
        select(MaterialItem.qty, MaterialItem.unit_price).where(
            MaterialItem.work_order_id == work_order.id
        )
    )
    lines = [tuple(row) for row in work_rows.all()] + [tuple(row) for row in material_rows.all()]

    total = compute_total(lines)
    work_order.total_amount = total
    work_order.updated_at = utcnow()
    logger.debug("Ricalcolato total_amount ordine %s: %s (%d righe)", work_order.id, total, len(lines))
    return total


async def recompute_paid(db: AsyncSession, work_order: WorkOrder) -> Decimal:
    """
    Ricalcola paid_amount da tutti i pagamenti dell'ordine.

    Le righe pendenti devono essere già state inviate al database (flush).
    """
    rows = await db.execute(
        select(Payment.amount, Payment.status).where(Payment.work_order_id == work_order.id)
    )
    paid = compute_paid(tuple(row) for row in rows.all())
    work_order.paid_amount = paid
    work_order.updated_at = utcnow()
    logger.debug("Ricalcolato paid_amount ordine %s: %s", work_order.id, paid)
    return paid
