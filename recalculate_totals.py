import asyncio
import sys
import os

# Aggiungi backend/ alla PYTHONPATH per importare autoservice.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from sqlalchemy import select

from autoservice.core.database import AsyncSessionLocal, engine
from autoservice.models import WorkOrder
from autoservice.services.work_order_service import WorkOrderService

async def recalculate():
    service = WorkOrderService()
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(WorkOrder.id).order_by(WorkOrder.id))
        ids = list(result.scalars().all())

    print(f"Ricalcolo totali per {len(ids)} ordini di lavoro...")
    fixed = 0
    for work_order_id in ids:
        # Una transazione per ordine: il lock FOR UPDATE dura solo il ricalcolo
        async with AsyncSessionLocal() as db:
            work_order = await service.get_by_id(db, work_order_id)
            before = (work_order.total_amount, work_order.paid_amount)
            work_order = await service.recalculate(db, work_order_id)
            if before != (work_order.total_amount, work_order.paid_amount):
                fixed += 1
                print(f"  #{work_order_id}: {before[0]}/{before[1]} -> "
                      f"{work_order.total_amount}/{work_order.paid_amount}")
            await db.commit()

    await engine.dispose()
    print(f"Completato. Ordini corretti: {fixed}")

if __name__ == "__main__":
    asyncio.run(recalculate())
