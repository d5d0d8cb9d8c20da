"""
API v1 Routes
Progetto: Autoservice (Gestione Ordini di Lavoro)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from autoservice.api.v1 import bookings, work_orders

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(bookings.router)
api_v1_router.include_router(work_orders.router)

# Esportazione
__all__ = ["api_v1_router"]
