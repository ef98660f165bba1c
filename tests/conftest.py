"""Async test fixtures for the relay using SQLite and faked upstream providers."""

from __future__ import annotations

import os
import tempfile

# Must be set before telemetry_relay is imported; the app engine is never connected in tests
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "telemetry-relay-test-logs"))

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.future import select

from telemetry_relay.core.config import settings
from telemetry_relay.database import Base, get_db
from telemetry_relay.models import ExternalUserMapping
from telemetry_relay.services.transcription_service import TranscriptionResult, get_transcriber
from telemetry_relay.utils.http_client import get_http_client


class FakeUpstream:
    """Records outbound requests and answers them with `responder`."""

    def __init__(self):
        self.requests = []
        self.responder = lambda request: httpx.Response(404, json={"error": "not stubbed"})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


class FakeTranscriber:
    def __init__(self):
        self.calls = []
        self.error = None
        self.result = TranscriptionResult(text="Resident ate a full breakfast.", language="en", duration_seconds=12.5)

    async def transcribe(self, filename, audio, language=None):
        self.calls.append({"filename": filename, "size": len(audio), "language": language})
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def relay_settings(monkeypatch):
    monkeypatch.setattr(settings, "RELAY_API_KEY", None)
    monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", "AC_test")
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "twilio-token")
    monkeypatch.setattr(settings, "TWILIO_FROM_NUMBER", "+15555550000")
    monkeypatch.setattr(settings, "TWILIO_API_BASE_URL", "https://api.twilio.test")
    monkeypatch.setattr(settings, "FITBIT_ACCESS_TOKEN", "fitbit-token")
    monkeypatch.setattr(settings, "FITBIT_VERIFICATION_CODE", "verify-me")
    monkeypatch.setattr(settings, "FITBIT_API_BASE_URL", "https://api.fitbit.test")
    monkeypatch.setattr(settings, "SUPABASE_URL", "https://project.supabase.test")
    monkeypatch.setattr(settings, "SUPABASE_SERVICE_ROLE_KEY", "service-role")
    monkeypatch.setattr(settings, "SUPABASE_STORAGE_BUCKET", "voice-recordings")
    return settings


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'relay.db'}", echo=False)

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(eng.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fetch_all(session_factory):
    """Read committed rows through a short-lived session."""
    async def _fetch(model, *criteria):
        async with session_factory() as session:
            stmt = select(model)
            if criteria:
                stmt = stmt.where(*criteria)
            result = await session.execute(stmt)
            return result.scalars().all()
    return _fetch


@pytest.fixture
def add_mapping(session_factory):
    async def _add(provider_type, external_user_id, agency_id="a1", resident_id="r1"):
        async with session_factory() as session:
            session.add(ExternalUserMapping(
                provider_type=provider_type,
                external_user_id=external_user_id,
                agency_id=agency_id,
                resident_id=resident_id
            ))
            await session.commit()
    return _add


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def transcriber():
    return FakeTranscriber()


@pytest_asyncio.fixture
async def client(session_factory, upstream, transcriber):
    """HTTPX async test client against the relay app."""
    from telemetry_relay.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as http_client:
            yield http_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_client] = override_get_http_client
    app.dependency_overrides[get_transcriber] = lambda: transcriber

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
