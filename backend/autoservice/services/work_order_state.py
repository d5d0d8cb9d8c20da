"""
Macchina a stati degli Ordini di Lavoro
Progetto: Autoservice (Gestione Ordini di Lavoro)

Riconosce gli stati, valida le transizioni secondo la politica configurata
e stabilisce quali modifiche sono ammesse in ciascuno stato.

Politiche:
- strict: solo gli archi di VALID_TRANSITIONS (default consigliato)
- permissive: qualsiasi stato riconosciuto, anche da uno stato finale
"""

import logging
from enum import Enum
from typing import Union

from autoservice.core.exceptions import BusinessValidationError, ConflictError
from autoservice.schemas.work_order import (
    TERMINAL_STATUSES,
    VALID_TRANSITIONS,
    StatusPolicy,
    WorkOrderStatus,
)

logger = logging.getLogger(__name__)


class Mutation(str, Enum):
    """Modifiche di un ordine soggette al controllo di stato."""
    ADD_ITEM = "add_item"
    ADD_PAYMENT = "add_payment"


# Stati in cui ciascuna modifica è bloccata con la politica 'strict'
_LOCKED_STATUSES: dict[Mutation, frozenset[WorkOrderStatus]] = {
    Mutation.ADD_ITEM: TERMINAL_STATUSES,
    Mutation.ADD_PAYMENT: frozenset({WorkOrderStatus.CANCELLED}),
}


def parse_status(value: Union[str, WorkOrderStatus]) -> WorkOrderStatus:
    """
    Converte una stringa in WorkOrderStatus.

    Raises:
        BusinessValidationError: Se lo stato non è riconosciuto
    """
    try:
        return WorkOrderStatus(value)
    except ValueError:
        raise BusinessValidationError(
            f"Stato '{value}' non riconosciuto",
            error_code="INVALID_STATUS",
            extra={"allowed": [s.value for s in WorkOrderStatus]},
        ) from None


def parse_policy(value: Union[str, StatusPolicy]) -> StatusPolicy:
    """Converte il valore di configurazione nella politica corrispondente."""
    return StatusPolicy(value)


def can_transition(
    current: WorkOrderStatus,
    target: WorkOrderStatus,
    policy: StatusPolicy = StatusPolicy.STRICT,
) -> bool:
    """Indica se la transizione current → target è ammessa dalla politica."""
    if policy == StatusPolicy.PERMISSIVE:
        return True
    return target in VALID_TRANSITIONS.get(current, [])


def ensure_transition(
    current: Union[str, WorkOrderStatus],
    target: Union[str, WorkOrderStatus],
    policy: StatusPolicy = StatusPolicy.STRICT,
) -> WorkOrderStatus:
    """
    Valida una transizione di stato e restituisce lo stato di destinazione.

    Args:
        current: Stato corrente dell'ordine
        target: Stato richiesto
        policy: Politica di validazione

    Returns:
        WorkOrderStatus: Lo stato di destinazione riconosciuto

    Raises:
        BusinessValidationError: Se lo stato richiesto non è riconosciuto
        ConflictError: Se la politica 'strict' non ammette la transizione
    """
    target_status = parse_status(target)
    current_status = parse_status(current)

    if not can_transition(current_status, target_status, policy):
        logger.warning(
            "Transizione non consentita: %s -> %s",
            current_status.value,
            target_status.value,
        )
        raise ConflictError(
            f"Transizione da '{current_status.value}' a '{target_status.value}' non consentita",
            error_code="INVALID_STATUS_TRANSITION",
            extra={
                "allowed": [s.value for s in VALID_TRANSITIONS.get(current_status, [])],
            },
        )

    return target_status


def ensure_mutable(
    current: Union[str, WorkOrderStatus],
    mutation: Mutation,
    policy: StatusPolicy = StatusPolicy.STRICT,
) -> None:
    """
    Verifica che lo stato corrente ammetta la modifica richiesta.

    Raises:
        ConflictError: Se con la politica 'strict' lo stato blocca la modifica
    """
    if policy == StatusPolicy.PERMISSIVE:
        return

    current_status = parse_status(current)
    if current_status in _LOCKED_STATUSES[mutation]:
        raise ConflictError(
            f"Non è possibile eseguire '{mutation.value}' su un ordine in stato "
            f"'{current_status.value}'",
            error_code="WORK_ORDER_LOCKED",
        )
