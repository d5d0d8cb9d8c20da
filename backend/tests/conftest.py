"""
Pytest configuration and fixtures per Autoservice.

I test di servizio e API usano un database SQLite su file (driver aiosqlite)
creato in una directory temporanea per ogni test. Le coroutine vengono
eseguite con asyncio.run: l'engine usa NullPool, quindi nessuna
connessione sopravvive tra un event loop e l'altro.
"""

import asyncio
import os

# Le impostazioni vengono lette all'import: vanno fissate prima di autoservice.*
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./autoservice-test.db"
os.environ["APP_ENV"] = "testing"
os.environ["WORK_ORDER_STATUS_POLICY"] = "strict"

import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from autoservice.core.database import build_session_factory, create_tables, get_db
from autoservice.main import app
from autoservice.models import Booking, Car, Client


BOOKING_ID = 42
CLIENT_ID = 1
CAR_ID = 7


def run(coro):
    """Esegue una coroutine in un nuovo event loop."""
    return asyncio.run(coro)


# ============================================================
# Fixtures per database
# ============================================================


@pytest.fixture
def engine(tmp_path):
    """Engine SQLite su file con schema creato."""
    db_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'autoservice.db'}",
        poolclass=NullPool,
    )
    run(create_tables(db_engine))
    yield db_engine
    run(db_engine.dispose())


@pytest.fixture
def session_factory(engine):
    """Session factory con le stesse opzioni dell'applicazione."""
    return build_session_factory(engine)


async def seed_booking(
    session_factory,
    booking_id: int = BOOKING_ID,
    client_id: int = CLIENT_ID,
    car_id: int = CAR_ID,
    plate: str = "AB123CD",
) -> None:
    """Inserisce cliente, auto e prenotazione."""
    async with session_factory() as db:
        if await db.get(Client, client_id) is None:
            db.add(Client(id=client_id, full_name="Mario Rossi", phone="+39 333 1234567"))
            await db.flush()
        db.add(Car(id=car_id, client_id=client_id, plate=plate, brand="Fiat", model="Panda"))
        await db.flush()
        db.add(
            Booking(
                id=booking_id,
                client_id=client_id,
                car_id=car_id,
                scheduled_at=datetime.datetime(2026, 3, 2, 9, 30),
                note="Tagliando",
            )
        )
        await db.commit()


@pytest.fixture
def seeded(session_factory):
    """Session factory con la prenotazione 42 (cliente 1, auto 7)."""
    run(seed_booking(session_factory))
    return session_factory


@pytest.fixture
def in_session(seeded):
    """
    Esegue operation(db) in una sessione e conferma la transazione,
    come fa un router al termine della richiesta.
    """
    def _call(operation):
        async def _run():
            async with seeded() as db:
                result = await operation(db)
                await db.commit()
                return result
        return run(_run())
    return _call


@pytest.fixture
def count_rows(seeded):
    """Conta le righe di un modello, opzionalmente filtrate."""
    def _count(model, *conditions) -> int:
        async def _run():
            async with seeded() as db:
                query = select(func.count()).select_from(model)
                if conditions:
                    query = query.where(*conditions)
                return (await db.execute(query)).scalar_one()
        return run(_run())
    return _count


# ============================================================
# Fixtures per API
# ============================================================


@pytest.fixture
def client(seeded):
    """TestClient con get_db collegato al database di test."""
    async def override_get_db():
        async with seeded() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
