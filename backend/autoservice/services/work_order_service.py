"""
Service Layer per gli Ordini di Lavoro
Progetto: Autoservice (Gestione Ordini di Lavoro)

Definisce la logica di business per la gestione degli ordini di lavoro:
creazione da prenotazione, transizioni di stato, voci di lavoro e
materiale, pagamenti e aggregato completo.

Ogni operazione lavora su una sola sessione: inserimento, ricalcolo dei
totali e audit sono inviati con flush e confermati insieme dal chiamante
(commit nel router). L'ordine di lavoro viene letto con FOR UPDATE prima
di ogni modifica, così le modifiche concorrenti dello stesso ordine si
serializzano sul database.
"""

import logging
from decimal import Decimal
from typing import Optional, Type, TypeVar, Union

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from autoservice.core.config import settings
from autoservice.core.exceptions import BusinessValidationError, DuplicateError, NotFoundError
from autoservice.models import MaterialItem, Payment, WorkItem, WorkOrder
from autoservice.models.mixins import utcnow
from autoservice.schemas.work_order import (
    AuditAction,
    AuditEntryRead,
    LineItemCreate,
    MaterialItemCreate,
    MaterialItemRead,
    PaymentCreate,
    PaymentRead,
    PaymentStatus,
    StatusPolicy,
    WorkItemCreate,
    WorkItemRead,
    WorkOrderCreate,
    WorkOrderFull,
    WorkOrderRead,
    WorkOrderStatus,
    quantize_quantity,
)
from autoservice.services.audit_service import WORK_ORDER_ENTITY, AuditService
from autoservice.services.booking_service import BookingService
from autoservice.services.totals import recompute_paid, recompute_total
from autoservice.services.work_order_state import (
    Mutation,
    ensure_mutable,
    ensure_transition,
    parse_policy,
    parse_status,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", WorkItem, MaterialItem, Payment)


class WorkOrderService:
    """
    Service per la gestione degli ordini di lavoro e del relativo registro.

    Fornisce metodi asincroni per interagire con il database
    in modo centralizzato, senza dipendenze da FastAPI.
    """

    def __init__(self, policy: Union[str, StatusPolicy, None] = None) -> None:
        """
        Inizializza il service.

        Args:
            policy: Politica delle transizioni di stato
                (default: settings.work_order_status_policy)
        """
        self.policy = parse_policy(policy or settings.work_order_status_policy)

    # -------------------------------------------------------------------
    # Lettura
    # -------------------------------------------------------------------

    async def get_by_id(
        self,
        db: AsyncSession,
        work_order_id: int,
        for_update: bool = False,
    ) -> WorkOrder:
        """
        Recupera un ordine di lavoro tramite ID.

        Args:
            db: Sessione database
            work_order_id: Id dell'ordine di lavoro
            for_update: Blocca la riga fino al termine della transazione

        Returns:
            WorkOrder: L'ordine di lavoro trovato

        Raises:
            NotFoundError: Se l'ordine di lavoro non esiste
        """
        query = select(WorkOrder).where(WorkOrder.id == work_order_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await db.execute(query)
        work_order = result.scalar_one_or_none()

        if not work_order:
            logger.warning("Ordine di lavoro non trovato: %s", work_order_id)
            raise NotFoundError(
                f"Ordine di lavoro con ID {work_order_id} non trovato",
                error_code="WORK_ORDER_NOT_FOUND",
            )

        return work_order

    async def get_all(
        self,
        db: AsyncSession,
        status_filter: Optional[WorkOrderStatus] = None,
        client_id: Optional[int] = None,
        car_id: Optional[int] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[WorkOrder], int]:
        """
        Recupera la lista paginata degli ordini di lavoro (più recenti prima).

        Returns:
            Tuple di (lista ordini, totale count)
        """
        conditions = []

        if status_filter:
            conditions.append(WorkOrder.status == WorkOrderStatus(status_filter).value)

        if client_id:
            conditions.append(WorkOrder.client_id == client_id)

        if car_id:
            conditions.append(WorkOrder.car_id == car_id)

        query = select(WorkOrder)
        count_query = select(func.count()).select_from(WorkOrder)
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        offset = (page - 1) * per_page
        query = query.order_by(WorkOrder.id.desc()).offset(offset).limit(per_page)

        result = await db.execute(query)
        work_orders = list(result.scalars().all())

        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        logger.debug("Recuperati %d ordini di lavoro su %d totali", len(work_orders), total)
        return work_orders, total

    async def get_full(self, db: AsyncSession, work_order_id: int) -> WorkOrderFull:
        """
        Restituisce l'ordine con voci, materiali, pagamenti e audit.

        Ogni lista è ordinata per id crescente.

        Raises:
            NotFoundError: Se l'ordine non esiste
        """
        work_order = await self.get_by_id(db, work_order_id)

        work_items = await self._list_rows(db, WorkItem, work_order_id)
        material_items = await self._list_rows(db, MaterialItem, work_order_id)
        payments = await self._list_rows(db, Payment, work_order_id)
        audit_log = await AuditService.list_for(db, WORK_ORDER_ENTITY, work_order_id)

        return WorkOrderFull(
            work_order=WorkOrderRead.model_validate(work_order),
            work_items=[WorkItemRead.model_validate(i) for i in work_items],
            material_items=[MaterialItemRead.model_validate(i) for i in material_items],
            payments=[PaymentRead.model_validate(p) for p in payments],
            audit_log=[AuditEntryRead.model_validate(a) for a in audit_log],
        )

    # -------------------------------------------------------------------
    # Creazione e stato
    # -------------------------------------------------------------------

    async def create_from_booking(
        self,
        db: AsyncSession,
        data: WorkOrderCreate,
    ) -> WorkOrder:
        """
        Crea l'ordine di lavoro di una prenotazione.

        client_id e car_id sono copiati dalla prenotazione; stato iniziale
        'created', totali a zero.

        Raises:
            NotFoundError: Se la prenotazione non esiste
            DuplicateError: Se la prenotazione ha già un ordine di lavoro
        """
        booking = await BookingService.get_by_id(db, data.booking_id)

        existing = await db.execute(
            select(WorkOrder.id).where(WorkOrder.booking_id == data.booking_id)
        )
        if existing.scalar_one_or_none() is not None:
            logger.warning("Ordine di lavoro già esistente per la prenotazione %s", data.booking_id)
            raise DuplicateError(
                "Esiste già un ordine di lavoro per questa prenotazione",
                extra={"booking_id": data.booking_id},
            )

        work_order = WorkOrder(
            booking_id=booking.id,
            client_id=booking.client_id,
            car_id=booking.car_id,
            description=data.description,
            status=WorkOrderStatus.CREATED.value,
            total_amount=Decimal("0.00"),
            paid_amount=Decimal("0.00"),
        )
        db.add(work_order)
        await self._flush_unique(
            db,
            "Esiste già un ordine di lavoro per questa prenotazione",
            extra={"booking_id": data.booking_id},
        )

        AuditService.record(
            db,
            WORK_ORDER_ENTITY,
            work_order.id,
            AuditAction.CREATE,
            {"booking_id": booking.id},
        )
        await db.flush()

        logger.info("Creato ordine di lavoro %s dalla prenotazione %s", work_order.id, booking.id)
        return work_order

    async def change_status(
        self,
        db: AsyncSession,
        work_order_id: int,
        new_status: Union[str, WorkOrderStatus],
    ) -> WorkOrder:
        """
        Cambia lo stato di un ordine di lavoro.

        Args:
            db: Sessione database
            work_order_id: Id dell'ordine
            new_status: Nuovo stato desiderato

        Returns:
            WorkOrder: L'ordine con lo stato aggiornato

        Raises:
            BusinessValidationError: Se lo stato non è riconosciuto
            NotFoundError: Se l'ordine non esiste
            ConflictError: Se la politica 'strict' non ammette la transizione
        """
        requested = parse_status(new_status)
        work_order = await self.get_by_id(db, work_order_id, for_update=True)

        target = ensure_transition(work_order.status, requested, self.policy)

        old_status = work_order.status
        work_order.status = target.value
        work_order.updated_at = utcnow()

        AuditService.record(
            db,
            WORK_ORDER_ENTITY,
            work_order.id,
            AuditAction.STATUS_CHANGE,
            {"status": target.value, "previous_status": old_status},
        )
        await db.flush()

        logger.info(
            "Cambiato stato ordine %s: %s -> %s",
            work_order_id,
            old_status,
            target.value,
        )
        return work_order

    # -------------------------------------------------------------------
    # Voci e pagamenti
    # -------------------------------------------------------------------

    async def add_work_item(
        self,
        db: AsyncSession,
        work_order_id: int,
        item_data: WorkItemCreate,
        idempotency_key: Optional[str] = None,
    ) -> tuple[WorkItem, WorkOrder]:
        """
        Aggiunge una voce di manodopera e ricalcola total_amount.

        Returns:
            Tuple di (voce creata, ordine con i totali aggiornati)

        Raises:
            BusinessValidationError: Se qty <= 0 o unit_price < 0
            NotFoundError: Se l'ordine non esiste
            ConflictError: Se lo stato dell'ordine non ammette nuove voci
        """
        return await self._add_line_item(
            db,
            work_order_id,
            WorkItem,
            item_data,
            AuditAction.ADD_WORK_ITEM,
            "work_item_id",
            idempotency_key,
        )

    async def add_material_item(
        self,
        db: AsyncSession,
        work_order_id: int,
        item_data: MaterialItemCreate,
        idempotency_key: Optional[str] = None,
    ) -> tuple[MaterialItem, WorkOrder]:
        """
        Aggiunge una voce di materiale e ricalcola total_amount.

        Returns:
            Tuple di (voce creata, ordine con i totali aggiornati)
        """
        return await self._add_line_item(
            db,
            work_order_id,
            MaterialItem,
            item_data,
            AuditAction.ADD_MATERIAL_ITEM,
            "material_item_id",
            idempotency_key,
            material_id=item_data.material_id,
        )

    async def add_payment(
        self,
        db: AsyncSession,
        work_order_id: int,
        payment_data: PaymentCreate,
        idempotency_key: Optional[str] = None,
    ) -> tuple[Payment, WorkOrder]:
        """
        Registra un pagamento 'paid' e ricalcola paid_amount.

        Returns:
            Tuple di (pagamento creato, ordine con i totali aggiornati)

        Raises:
            BusinessValidationError: Se amount <= 0
            NotFoundError: Se l'ordine non esiste
            ConflictError: Se l'ordine è annullato
        """
        if payment_data.amount <= 0:
            raise BusinessValidationError(
                "L'importo del pagamento deve essere maggiore di zero",
                extra={"fields": ["amount>0"]},
            )

        work_order = await self.get_by_id(db, work_order_id, for_update=True)

        # Un retry di un pagamento riuscito restituisce la riga originale
        # anche se nel frattempo l'ordine è stato annullato
        replayed = await self._find_by_key(db, Payment, work_order_id, idempotency_key)
        if replayed is not None:
            logger.info("Pagamento %s già registrato (chiave %s)", replayed.id, idempotency_key)
            return replayed, work_order

        ensure_mutable(work_order.status, Mutation.ADD_PAYMENT, self.policy)

        payment = Payment(
            work_order_id=work_order_id,
            amount=payment_data.amount,
            method=payment_data.method.value,
            status=PaymentStatus.PAID.value,
            idempotency_key=idempotency_key,
        )
        db.add(payment)
        await self._flush_unique(db, "Pagamento già registrato con questa chiave di idempotenza")

        await recompute_paid(db, work_order)

        AuditService.record(
            db,
            WORK_ORDER_ENTITY,
            work_order_id,
            AuditAction.PAYMENT,
            {
                "payment_id": payment.id,
                "amount": payment.amount,
                "method": payment.method,
            },
        )
        await db.flush()

        logger.info(
            "Registrato pagamento %s sull'ordine %s: %s (%s)",
            payment.id,
            work_order_id,
            payment.amount,
            payment.method,
        )
        return payment, work_order

    async def recalculate(self, db: AsyncSession, work_order_id: int) -> WorkOrder:
        """
        Ricalcola entrambi i totali dell'ordine.

        Registra un evento di audit solo se uno dei valori memorizzati
        era disallineato rispetto alle righe.
        """
        work_order = await self.get_by_id(db, work_order_id, for_update=True)
        old_total, old_paid = work_order.total_amount, work_order.paid_amount

        total = await recompute_total(db, work_order)
        paid = await recompute_paid(db, work_order)

        if total != old_total or paid != old_paid:
            AuditService.record(
                db,
                WORK_ORDER_ENTITY,
                work_order_id,
                AuditAction.RECALCULATE,
                {
                    "total_amount": total,
                    "paid_amount": paid,
                    "previous_total_amount": old_total,
                    "previous_paid_amount": old_paid,
                },
            )
            logger.warning(
                "Totali disallineati sull'ordine %s: total %s -> %s, paid %s -> %s",
                work_order_id,
                old_total,
                total,
                old_paid,
                paid,
            )

        await db.flush()
        return work_order

    # -------------------------------------------------------------------
    # Helper
    # -------------------------------------------------------------------

    async def _add_line_item(
        self,
        db: AsyncSession,
        work_order_id: int,
        model: Type[RowT],
        item_data: LineItemCreate,
        action: AuditAction,
        id_field: str,
        idempotency_key: Optional[str],
        **extra_columns,
    ) -> tuple[RowT, WorkOrder]:
        if item_data.qty <= 0 or item_data.unit_price < 0:
            raise BusinessValidationError(
                "Valori non validi per la voce",
                extra={"fields": ["qty>0", "unit_price>=0"]},
            )

        work_order = await self.get_by_id(db, work_order_id, for_update=True)

        replayed = await self._find_by_key(db, model, work_order_id, idempotency_key)
        if replayed is not None:
            logger.info("Voce %s già registrata (chiave %s)", replayed.id, idempotency_key)
            return replayed, work_order

        ensure_mutable(work_order.status, Mutation.ADD_ITEM, self.policy)

        item = model(
            work_order_id=work_order_id,
            name=item_data.name,
            qty=item_data.qty,
            unit_price=item_data.unit_price,
            idempotency_key=idempotency_key,
            **extra_columns,
        )
        db.add(item)
        await self._flush_unique(db, "Voce già registrata con questa chiave di idempotenza")

        await recompute_total(db, work_order)

        AuditService.record(
            db,
            WORK_ORDER_ENTITY,
            work_order_id,
            action,
            {
                id_field: item.id,
                "name": item.name,
                "qty": str(quantize_quantity(item.qty)),
                "unit_price": item.unit_price,
            },
        )
        await db.flush()

        logger.info(
            "Aggiunta voce %s (%s) all'ordine %s, totale %s",
            item.id,
            action.value,
            work_order_id,
            work_order.total_amount,
        )
        return item, work_order

    @staticmethod
    async def _list_rows(db: AsyncSession, model: Type[RowT], work_order_id: int) -> list[RowT]:
        result = await db.execute(
            select(model).where(model.work_order_id == work_order_id).order_by(model.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def _find_by_key(
        db: AsyncSession,
        model: Type[RowT],
        work_order_id: int,
        idempotency_key: Optional[str],
    ) -> Optional[RowT]:
        """Riga già creata con la stessa chiave di idempotenza, se presente."""
        if not idempotency_key:
            return None
        result = await db.execute(
            select(model).where(
                model.work_order_id == work_order_id,
                model.idempotency_key == idempotency_key,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def _flush_unique(db: AsyncSession, detail: str, extra: Optional[dict] = None) -> None:
        """Flush che traduce le violazioni di unicità in DuplicateError."""
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("Violazione vincolo di unicità: %s", exc.orig)
            raise DuplicateError(detail, extra=extra) from exc
