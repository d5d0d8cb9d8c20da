"""
Modelli Database SQLAlchemy
Progetto: Autoservice (Gestione Ordini di Lavoro)

Import centralizzato di tutti i modelli per create_all e usage generico.

Modelli:
- Client, Car: anagrafiche (collaboratori esterni al registro)
- Booking: prenotazioni da cui nascono gli ordini di lavoro
- WorkOrder, WorkItem, MaterialItem: ordine di lavoro e righe
- Payment: pagamenti registrati sull'ordine
- AuditEntry: traccia immutabile delle modifiche
"""

# SQLAlchemy 2.0 Base declarativa
# Importato qui per essere disponibile per tutti i modelli
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from autoservice.models.client import Car, Client
from autoservice.models.booking import Booking
from autoservice.models.work_order import MaterialItem, WorkItem, WorkOrder
from autoservice.models.payment import Payment
from autoservice.models.audit import AuditEntry

__all__ = [
    "Base",
    "Client",
    "Car",
    "Booking",
    "WorkOrder",
    "WorkItem",
    "MaterialItem",
    "Payment",
    "AuditEntry",
]
