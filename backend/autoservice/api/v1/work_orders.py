"""
Router FastAPI per gli Ordini di Lavoro
Progetto: Autoservice (Gestione Ordini di Lavoro)

Definisce gli endpoint API per gli ordini di lavoro: creazione da
prenotazione, cambio stato, voci di lavoro e materiale, pagamenti e
aggregato completo. Ogni endpoint di modifica conferma una sola
transazione al termine dell'operazione.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from autoservice.core.database import get_db
from autoservice.schemas.work_order import (
    MaterialItemCreate,
    MaterialItemRead,
    MaterialItemResult,
    PaymentCreate,
    PaymentRead,
    PaymentResult,
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
from autoservice.services.work_order_service import WorkOrderService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Istanza del service
work_order_service = WorkOrderService()

# Router con prefix e tag
router = APIRouter(
    prefix="/work-orders",
    tags=["Ordini di Lavoro"],
)

WorkOrderId = Path(..., gt=0, description="Id dell'ordine di lavoro")
IdempotencyKey = Header(
    None,
    alias="Idempotency-Key",
    max_length=100,
    description="Chiave per deduplicare i retry della stessa richiesta",
)


# -------------------------------------------------------------------
# Endpoints per Ordini di Lavoro
# -------------------------------------------------------------------

@router.get(
    "",
    name="work_orders_list",
    summary="Lista ordini di lavoro",
    response_model=WorkOrderList,
    status_code=status.HTTP_200_OK,
)
async def get_work_orders(
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(20, ge=1, le=100, description="Elementi per pagina"),
    status_filter: Optional[WorkOrderStatus] = Query(
        None,
        alias="status",
        description="Filtro per stato dell'ordine",
    ),
    client_id: Optional[int] = Query(None, gt=0, description="Filtro per cliente"),
    car_id: Optional[int] = Query(None, gt=0, description="Filtro per auto"),
    db: AsyncSession = Depends(get_db),
) -> WorkOrderList:
    """Recupera la lista paginata degli ordini di lavoro."""
    work_orders, total = await work_order_service.get_all(
        db=db,
        status_filter=status_filter,
        client_id=client_id,
        car_id=car_id,
        page=page,
        per_page=per_page,
    )

    return WorkOrderList(
        items=[WorkOrderRead.model_validate(wo) for wo in work_orders],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post(
    "",
    name="work_order_create",
    summary="Crea ordine di lavoro da prenotazione",
    response_model=WorkOrderRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_work_order(
    data: WorkOrderCreate,
    db: AsyncSession = Depends(get_db),
) -> WorkOrderRead:
    """
    Crea l'ordine di lavoro di una prenotazione.

    Raises:
        NotFoundError: Se la prenotazione non esiste (404)
        DuplicateError: Se la prenotazione ha già un ordine (409)
    """
    work_order = await work_order_service.create_from_booking(db, data)
    await db.commit()
    return WorkOrderRead.model_validate(work_order)


@router.get(
    "/{work_order_id}",
    name="work_order_detail",
    summary="Dettaglio ordine di lavoro",
    response_model=WorkOrderRead,
    status_code=status.HTTP_200_OK,
)
async def get_work_order(
    work_order_id: int = WorkOrderId,
    db: AsyncSession = Depends(get_db),
) -> WorkOrderRead:
    """Recupera un ordine di lavoro."""
    work_order = await work_order_service.get_by_id(db, work_order_id)
    return WorkOrderRead.model_validate(work_order)


@router.get(
    "/{work_order_id}/full",
    name="work_order_full",
    summary="Ordine di lavoro completo",
    description="Ordine con voci di lavoro, materiali, pagamenti e registro di audit.",
    response_model=WorkOrderFull,
    status_code=status.HTTP_200_OK,
)
async def get_work_order_full(
    work_order_id: int = WorkOrderId,
    db: AsyncSession = Depends(get_db),
) -> WorkOrderFull:
    """Recupera l'aggregato completo dell'ordine."""
    return await work_order_service.get_full(db, work_order_id)


@router.patch(
    "/{work_order_id}/status",
    name="work_order_change_status",
    summary="Cambia stato ordine di lavoro",
    response_model=WorkOrderRead,
    status_code=status.HTTP_200_OK,
)
async def change_work_order_status(
    data: WorkOrderStatusUpdate,
    work_order_id: int = WorkOrderId,
    db: AsyncSession = Depends(get_db),
) -> WorkOrderRead:
    """
    Cambia lo stato di un ordine di lavoro.

    Raises:
        BusinessValidationError: Stato non riconosciuto (400)
        NotFoundError: Ordine inesistente (404)
        ConflictError: Transizione non ammessa dalla politica (409)
    """
    work_order = await work_order_service.change_status(db, work_order_id, data.status)
    await db.commit()
    return WorkOrderRead.model_validate(work_order)


@router.post(
    "/{work_order_id}/recalculate",
    name="work_order_recalculate",
    summary="Ricalcola i totali dell'ordine",
    response_model=WorkOrderRead,
    status_code=status.HTTP_200_OK,
)
async def recalculate_work_order(
    work_order_id: int = WorkOrderId,
    db: AsyncSession = Depends(get_db),
) -> WorkOrderRead:
    """Ricalcola total_amount e paid_amount dalle righe."""
    work_order = await work_order_service.recalculate(db, work_order_id)
    await db.commit()
    return WorkOrderRead.model_validate(work_order)


# -------------------------------------------------------------------
# Endpoints per Voci e Pagamenti (nested)
# -------------------------------------------------------------------

@router.post(
    "/{work_order_id}/work-items",
    name="work_item_add",
    summary="Aggiungi voce di lavoro",
    response_model=WorkItemResult,
    status_code=status.HTTP_201_CREATED,
)
async def add_work_item(
    item_data: WorkItemCreate,
    work_order_id: int = WorkOrderId,
    idempotency_key: Optional[str] = IdempotencyKey,
    db: AsyncSession = Depends(get_db),
) -> WorkItemResult:
    """Aggiunge una voce di manodopera e restituisce i totali aggiornati."""
    item, work_order = await work_order_service.add_work_item(
        db, work_order_id, item_data, idempotency_key
    )
    await db.commit()
    return WorkItemResult(
        item=WorkItemRead.model_validate(item),
        totals=WorkOrderTotals.model_validate(work_order),
    )


@router.post(
    "/{work_order_id}/material-items",
    name="material_item_add",
    summary="Aggiungi voce di materiale",
    response_model=MaterialItemResult,
    status_code=status.HTTP_201_CREATED,
)
async def add_material_item(
    item_data: MaterialItemCreate,
    work_order_id: int = WorkOrderId,
    idempotency_key: Optional[str] = IdempotencyKey,
    db: AsyncSession = Depends(get_db),
) -> MaterialItemResult:
    """Aggiunge una voce di materiale e restituisce i totali aggiornati."""
    item, work_order = await work_order_service.add_material_item(
        db, work_order_id, item_data, idempotency_key
    )
    await db.commit()
    return MaterialItemResult(
        item=MaterialItemRead.model_validate(item),
        totals=WorkOrderTotals.model_validate(work_order),
    )


@router.post(
    "/{work_order_id}/payments",
    name="payment_add",
    summary="Registra pagamento",
    response_model=PaymentResult,
    status_code=status.HTTP_201_CREATED,
)
async def add_payment(
    payment_data: PaymentCreate,
    work_order_id: int = WorkOrderId,
    idempotency_key: Optional[str] = IdempotencyKey,
    db: AsyncSession = Depends(get_db),
) -> PaymentResult:
    """Registra un pagamento e restituisce l'ordine aggiornato."""
    payment, work_order = await work_order_service.add_payment(
        db, work_order_id, payment_data, idempotency_key
    )
    await db.commit()
    return PaymentResult(
        payment=PaymentRead.model_validate(payment),
        work_order=WorkOrderRead.model_validate(work_order),
    )
