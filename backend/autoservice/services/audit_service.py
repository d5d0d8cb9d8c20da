"""
Service per il registro di audit
Progetto: Autoservice (Gestione Ordini di Lavoro)

Le righe di audit vengono aggiunte alla sessione del chiamante: sono
confermate nella stessa transazione della modifica che descrivono e
annullate insieme a essa. Non esiste una modifica confermata senza traccia.
"""

import datetime
import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from autoservice.models import AuditEntry
from autoservice.schemas.work_order import quantize_money

logger = logging.getLogger(__name__)

WORK_ORDER_ENTITY = "work_order"


def _json_safe(value: Any) -> Any:
    """Converte i valori dei dettagli in tipi serializzabili JSON."""
    if isinstance(value, Decimal):
        return str(quantize_money(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


class AuditService:
    """Scrittura e lettura del registro di audit."""

    @staticmethod
    def record(
        db: AsyncSession,
        entity: str,
        entity_id: int,
        action: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditEntry:
        """
        Aggiunge un evento di audit alla transazione corrente.

        Args:
            db: Sessione database del chiamante
            entity: Tipo di entità (es. 'work_order')
            entity_id: Id dell'entità
            action: Azione eseguita
            details: Dati strutturati dell'azione

        Returns:
            AuditEntry: La riga aggiunta (id disponibile dopo il flush)
        """
        entry = AuditEntry(
            entity=entity,
            entity_id=entity_id,
            action=str(_json_safe(action)),
            details=_json_safe(details or {}),
        )
        db.add(entry)
        logger.debug("Audit %s:%s %s", entity, entity_id, entry.action)
        return entry

    @staticmethod
    async def list_for(
        db: AsyncSession,
        entity: str,
        entity_id: int,
    ) -> Sequence[AuditEntry]:
        """
        Restituisce gli eventi di un'entità in ordine di inserimento (id crescente).
        """
        result = await db.execute(
            select(AuditEntry)
            .where(AuditEntry.entity == entity, AuditEntry.entity_id == entity_id)
            .order_by(AuditEntry.id)
        )
        return result.scalars().all()
