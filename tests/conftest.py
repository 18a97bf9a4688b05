import sys, os
import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio, httpx
from httpx import ASGITransport
from fastapi.testclient import TestClient

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from database import init_db, make_engine, make_session_factory
from main import app
from utils.device_classifier import classify
from utils.tracking_service import TrackingService, get_tracking_service
from utils.tracking_store import MemoryTrackingStore, SqlTrackingStore
from utils.tracking_types import Location, ScanEvent

from tests.helpers.user_agents import DESKTOP_UA


@pytest.fixture
def memory_store():
    return MemoryTrackingStore()


@pytest.fixture
def sql_store():
    """SQL-Store auf einer In-Memory-SQLite-Datenbank."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield SqlTrackingStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def service(memory_store):
    return TrackingService(memory_store)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_tracking_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_tracking_service, None)


@pytest_asyncio.fixture
async def async_client(service):
    """Asynchroner Testclient über die ASGI-App."""
    app.dependency_overrides[get_tracking_service] = lambda: service
    transport = ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_tracking_service, None)


@pytest.fixture
def make_scan():
    """Baut ScanEvents direkt (ohne Store), z. B. für Auswertungstests."""
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _make(ip="1.1.1.1", user_agent=DESKTOP_UA, country="Unknown"):
        counter["n"] += 1
        return ScanEvent(
            id=uuid.uuid4().hex[:12],
            timestamp=base + timedelta(minutes=counter["n"]),
            raw_user_agent=user_agent,
            source_ip=ip,
            location=Location(country=country),
            device=classify(user_agent),
        )

    return _make
