"""
Schemas Pydantic per gli Ordini di Lavoro
Progetto: Autoservice (Gestione Ordini di Lavoro)

Definisce gli schemi di validazione e serializzazione per l'API.

I campi opzionali in input hanno tre stati: assente (si usa il default),
null esplicito (accettato solo dove ha significato, es. material_id),
valore. Pydantic distingue assente/presente tramite model_fields_set.
"""

import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    computed_field,
    field_validator,
    model_validator,
)


CENT = Decimal("0.01")
QTY_STEP = Decimal("0.001")


def quantize_money(value: Decimal) -> Decimal:
    """Arrotonda un importo a due decimali (ROUND_HALF_UP)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_quantity(value: Decimal) -> Decimal:
    """Arrotonda una quantità alla scala della colonna (tre decimali)."""
    return value.quantize(QTY_STEP, rounding=ROUND_HALF_UP)


def _decimal_to_json(value: Decimal) -> float:
    return float(quantize_money(value))


def _quantity_to_json(value: Decimal) -> float:
    return float(quantize_quantity(value))


# Importi e quantità: Decimal internamente, numero in JSON
Money = Annotated[Decimal, PlainSerializer(_decimal_to_json, return_type=float, when_used="json")]
Quantity = Annotated[Decimal, PlainSerializer(_quantity_to_json, return_type=float, when_used="json")]


# -------------------------------------------------------------------
# Enum per gli stati dell'ordine di lavoro
# -------------------------------------------------------------------

class WorkOrderStatus(str, Enum):
    """Enum che definisce i possibili stati di un ordine di lavoro."""
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    WAITING_APPROVAL = "waiting_approval"
    READY = "ready"
    CLOSED = "closed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES: frozenset[WorkOrderStatus] = frozenset(
    {WorkOrderStatus.CLOSED, WorkOrderStatus.CANCELLED}
)


# -------------------------------------------------------------------
# Matrice delle transizioni di stato valide (politica 'strict')
# -------------------------------------------------------------------

# La validazione avviene in autoservice.services.work_order_state;
# questa matrice è l'unica source of truth del diagramma degli stati.
VALID_TRANSITIONS: dict[WorkOrderStatus, list[WorkOrderStatus]] = {
    WorkOrderStatus.CREATED: [WorkOrderStatus.IN_PROGRESS, WorkOrderStatus.CANCELLED],
    WorkOrderStatus.IN_PROGRESS: [WorkOrderStatus.WAITING_APPROVAL, WorkOrderStatus.CANCELLED],
    WorkOrderStatus.WAITING_APPROVAL: [WorkOrderStatus.READY, WorkOrderStatus.CANCELLED],
    WorkOrderStatus.READY: [WorkOrderStatus.CLOSED, WorkOrderStatus.CANCELLED],
    WorkOrderStatus.CLOSED: [],  # Stato finale
    WorkOrderStatus.CANCELLED: [],  # Stato finale
}


class StatusPolicy(str, Enum):
    """Politica di validazione delle transizioni di stato."""
    STRICT = "strict"
    PERMISSIVE = "permissive"


# -------------------------------------------------------------------
# Enum per i pagamenti
# -------------------------------------------------------------------

class PaymentMethod(str, Enum):
    """Metodi di pagamento accettati."""
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"


class PaymentStatus(str, Enum):
    """Stati di un pagamento. Solo PAID concorre a paid_amount."""
    PAID = "paid"
    PENDING = "pending"
    REFUNDED = "refunded"


class AuditAction(str, Enum):
    """Azioni registrate nel registro di audit degli ordini di lavoro."""
    CREATE = "create"
    STATUS_CHANGE = "status_change"
    ADD_WORK_ITEM = "add_work_item"
    ADD_MATERIAL_ITEM = "add_material_item"
    PAYMENT = "payment"
    RECALCULATE = "recalculate"


# -------------------------------------------------------------------
# Funzioni di validazione standalone
# -------------------------------------------------------------------

def validate_item_name(v: str) -> str:
    """
    Valida e normalizza il nome di una voce.

    Raises:
        ValueError: Se il nome è vuoto dopo la rimozione degli spazi
    """
    v = v.strip()
    if not v:
        raise ValueError("Il nome della voce è obbligatorio")
    return v


# -------------------------------------------------------------------
# Schemas per le voci (lavori e materiali)
# -------------------------------------------------------------------

class LineItemCreate(BaseModel):
    """
    Schema base per la creazione di una voce.

    Attributes:
        name: Descrizione della voce (obbligatoria, non vuota)
        qty: Quantità (> 0, default 1 se assente)
        unit_price: Prezzo unitario (>= 0, default 0 se assente; alias 'price')
    """
    name: str = Field(..., max_length=500, description="Descrizione della voce")
    qty: Decimal = Field(
        default=Decimal("1"),
        gt=Decimal("0"),
        description="Quantità (arrotondata a tre decimali)",
    )
    unit_price: Decimal = Field(
        default=Decimal("0"),
        ge=Decimal("0"),
        validation_alias=AliasChoices("unit_price", "price"),
        description="Prezzo unitario",
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Valida e normalizza il nome."""
        return validate_item_name(v)

    @field_validator("qty")
    @classmethod
    def round_qty(cls, v: Decimal) -> Decimal:
        """Arrotonda alla scala della colonna; deve restare positiva."""
        v = quantize_quantity(v)
        if v <= 0:
            raise ValueError("La quantità deve essere maggiore di zero")
        return v

    @field_validator("unit_price")
    @classmethod
    def round_unit_price(cls, v: Decimal) -> Decimal:
        """Arrotonda al centesimo."""
        return quantize_money(v)


class WorkItemCreate(LineItemCreate):
    """Schema per la creazione di una voce di manodopera."""
    pass


class MaterialItemCreate(LineItemCreate):
    """Schema per la creazione di una voce di materiale."""
    material_id: Optional[int] = Field(
        default=None,
        gt=0,
        description="Riferimento opzionale al catalogo materiali",
    )


class LineItemRead(BaseModel):
    """Schema base per la lettura di una voce."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    work_order_id: int
    name: str
    qty: Quantity
    unit_price: Money
    created_at: datetime.datetime

    @computed_field
    @property
    def line_total(self) -> Money:
        """Estensione della riga (qty * unit_price)."""
        return quantize_money(self.qty * self.unit_price)


class WorkItemRead(LineItemRead):
    """Schema per la lettura di una voce di manodopera."""
    pass


class MaterialItemRead(LineItemRead):
    """Schema per la lettura di una voce di materiale."""
    material_id: Optional[int] = None


# -------------------------------------------------------------------
# Schemas per i pagamenti
# -------------------------------------------------------------------

class PaymentCreate(BaseModel):
    """
    Schema per la registrazione di un pagamento.

    Attributes:
        amount: Importo (> 0)
        method: Metodo di pagamento (default 'cash' se assente)
    """
    amount: Decimal = Field(
        ...,
        gt=Decimal("0"),
        description="Importo del pagamento (arrotondato al centesimo)",
    )
    method: PaymentMethod = Field(default=PaymentMethod.CASH, description="Metodo di pagamento")

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Decimal) -> Decimal:
        """Arrotonda al centesimo; deve restare positivo."""
        v = quantize_money(v)
        if v <= 0:
            raise ValueError("L'importo deve essere maggiore di zero")
        return v


class PaymentRead(BaseModel):
    """Schema per la lettura di un pagamento."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    work_order_id: int
    amount: Money
    method: str
    status: str
    paid_at: Optional[datetime.datetime]
    created_at: datetime.datetime


# -------------------------------------------------------------------
# Schemas per WorkOrder (ordini di lavoro)
# -------------------------------------------------------------------

class WorkOrderCreate(BaseModel):
    """
    Schema per la creazione di un ordine di lavoro da una prenotazione.
    """
    booking_id: int = Field(..., gt=0, description="Prenotazione di origine")
    description: Optional[str] = Field(None, max_length=5000, description="Descrizione del lavoro")

    @field_validator("description")
    @classmethod
    def normalize_description(cls, v: Optional[str]) -> Optional[str]:
        """Stringa vuota equivale ad assente."""
        if v is None:
            return v
        v = v.strip()
        return v or None


class WorkOrderStatusUpdate(BaseModel):
    """
    Schema per il cambio di stato di un ordine di lavoro.

    Lo stato è una stringa libera: il riconoscimento avviene nella
    macchina a stati, che risponde con un errore di validazione.
    """
    status: str = Field(..., description="Nuovo stato dell'ordine")


class WorkOrderRead(BaseModel):
    """
    Schema per la lettura di un ordine di lavoro.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_id: int
    client_id: int
    car_id: int
    description: Optional[str]
    status: WorkOrderStatus
    total_amount: Money
    paid_amount: Money
    created_at: datetime.datetime
    updated_at: datetime.datetime

    @computed_field
    @property
    def debt(self) -> Money:
        """Importo ancora da incassare."""
        return self.total_amount - self.paid_amount


class WorkOrderTotals(BaseModel):
    """Totali dell'ordine restituiti dopo l'aggiunta di una voce."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: WorkOrderStatus
    total_amount: Money
    paid_amount: Money
    updated_at: datetime.datetime


class WorkItemResult(BaseModel):
    """Risposta all'aggiunta di una voce di manodopera."""
    item: WorkItemRead
    totals: WorkOrderTotals


class MaterialItemResult(BaseModel):
    """Risposta all'aggiunta di una voce di materiale."""
    item: MaterialItemRead
    totals: WorkOrderTotals


class PaymentResult(BaseModel):
    """Risposta alla registrazione di un pagamento."""
    payment: PaymentRead
    work_order: WorkOrderRead


class AuditEntryRead(BaseModel):
    """Schema per la lettura di un evento di audit."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    entity: str
    entity_id: int
    action: str
    details: dict[str, Any]
    created_at: datetime.datetime


class WorkOrderFull(BaseModel):
    """
    Aggregato completo dell'ordine di lavoro.

    Ogni lista è ordinata per id crescente.
    """
    work_order: WorkOrderRead
    work_items: list[WorkItemRead] = Field(default_factory=list)
    material_items: list[MaterialItemRead] = Field(default_factory=list)
    payments: list[PaymentRead] = Field(default_factory=list)
    audit_log: list[AuditEntryRead] = Field(default_factory=list)


# -------------------------------------------------------------------
# Schema per lista paginata
# -------------------------------------------------------------------

class WorkOrderList(BaseModel):
    """
    Schema per la risposta paginata degli ordini di lavoro.

    Attributes:
        items: Lista degli ordini di lavoro
        total: Numero totale di record
        page: Pagina corrente
        per_page: Record per pagina
        total_pages: Numero totale di pagine (calcolato automaticamente)
    """
    items: list[WorkOrderRead]
    total: int
    page: int
    per_page: int
    total_pages: int = 0

    @model_validator(mode="after")
    def compute_total_pages(self) -> "WorkOrderList":
        """Calcola automaticamente il numero totale di pagine."""
        if self.per_page > 0:
            self.total_pages = (self.total + self.per_page - 1) // self.per_page
        return self
