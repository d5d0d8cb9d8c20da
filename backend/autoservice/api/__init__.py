"""
API Routes
Progetto: Autoservice (Gestione Ordini di Lavoro)

Modulo per l'aggregazione dei router versionati.
"""

from autoservice.api.v1 import api_v1_router

# Esportazione router
__all__ = ["api_v1_router"]
