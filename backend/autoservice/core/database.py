"""
Configurazione Database - SQLAlchemy 2.0 Async
Progetto: Autoservice (Gestione Ordini di Lavoro)

Definisce engine, session factory e dependency injection per FastAPI.
Ogni richiesta HTTP usa una sola sessione: le scritture di un'operazione
(inserimento, ricalcolo totali, audit) vengono confermate insieme dal router.
"""

import logging
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from autoservice.core.config import Settings, settings

# Logger per questo modulo
logger = logging.getLogger(__name__)


def build_engine(config: Settings) -> AsyncEngine:
    """
    Crea l'engine async a partire dalle impostazioni.

    Le opzioni del pool sono passate solo ai database server:
    SQLite (usato in sviluppo e nei test) non le accetta.
    """
    options: dict[str, Any] = {
        "echo": config.debug,
        "pool_pre_ping": True,
    }
    if not config.is_sqlite:
        options["pool_size"] = config.db_pool_size
        options["max_overflow"] = config.db_max_overflow
    return create_async_engine(config.database_url, **options)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory con le opzioni usate in tutta l'applicazione."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# ------------------------------------------------------------
# Engine e Session Factory
# ------------------------------------------------------------
engine: AsyncEngine = build_engine(settings)

AsyncSessionLocal = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection per FastAPI.

    Crea una sessione database per ogni richiesta e la chiude
    automaticamente al termine. Se la richiesta fallisce prima del
    commit, tutte le scritture pendenti vengono annullate.

    Yields:
        AsyncSession: Sessione database async
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Crea le tabelle mancanti."""
    from autoservice.models import Base

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Schema database verificato")


async def init_db() -> None:
    """
    Inizializza la connessione al database.

    Esegue un test di connessione per verificare
    che il database sia raggiungibile.
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Connessione al database stabilita con successo")
    except Exception as e:
        logger.error("Errore connessione database: %s", e)
        raise

    if settings.db_create_tables:
        await create_tables(engine)


async def close_db() -> None:
    """
    Chiude le connessioni al database.

    Da chiamare durante lo shutdown dell'applicazione.
    """
    await engine.dispose()
    logger.info("Connessioni database chiuse")
