"""
Schemas Pydantic per il progetto Autoservice

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle richieste e risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from autoservice.schemas import WorkOrderRead, BookingRead, etc.

from autoservice.schemas.booking import (
    BookingCreate,
    BookingRead,
    BookingStatus,
    BookingStatusUpdate,
)
from autoservice.schemas.work_order import (
    AuditAction,
    AuditEntryRead,
    MaterialItemCreate,
    MaterialItemRead,
    MaterialItemResult,
    PaymentCreate,
    PaymentMethod,
    PaymentRead,
    PaymentResult,
    PaymentStatus,
    StatusPolicy,
    VALID_TRANSITIONS,
    WorkItemCreate,
    WorkItemRead,
    WorkItemResult,
    WorkOrderCreate,
    WorkOrderFull,
    WorkOrderList,
    WorkOrderRead,
    WorkOrderStatus,
    WorkOrderStatusUpdate,
    WorkOrderTotals,
)

__all__ = [
    "BookingCreate",
    "BookingRead",
    "BookingStatus",
    "BookingStatusUpdate",
    "AuditAction",
    "AuditEntryRead",
    "MaterialItemCreate",
    "MaterialItemRead",
    "MaterialItemResult",
    "PaymentCreate",
    "PaymentMethod",
    "PaymentRead",
    "PaymentResult",
    "PaymentStatus",
    "StatusPolicy",
    "VALID_TRANSITIONS",
    "WorkItemCreate",
    "WorkItemRead",
    "WorkItemResult",
    "WorkOrderCreate",
    "WorkOrderFull",
    "WorkOrderList",
    "WorkOrderRead",
    "WorkOrderStatus",
    "WorkOrderStatusUpdate",
    "WorkOrderTotals",
]
