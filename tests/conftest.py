"""Shared test fixtures."""

from __future__ import annotations

import os

os.environ.setdefault("RUNERA_JWT_SECRET", "test-secret-do-not-use-in-production")
os.environ["RUNERA_SIGNER_PRIVATE_KEY"] = ""
os.environ["RUNERA_CHAIN_RPC_URL"] = ""

import asyncio  # noqa: E402
from collections.abc import AsyncGenerator, Callable  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402

import fakeredis  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from eth_account import Account  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from runera.auth.jwt import create_access_token  # noqa: E402
from runera.chain.attestation import AttestationService  # noqa: E402
from runera.chain.reconciler import NonceReconciler  # noqa: E402
from runera.chain.signer import AttestationSigner  # noqa: E402
from runera.config import get_settings  # noqa: E402
from runera.database import close_db, get_engine, get_session_factory, init_db  # noqa: E402
from runera.db.base import Base  # noqa: E402
from runera.db import models  # noqa: E402, F401
from runera.main import create_app  # noqa: E402
from runera.redis_client import set_redis  # noqa: E402
from runera.runs.coordinator import RunSubmission, RunSubmissionCoordinator, get_coordinator  # noqa: E402
from runera.users.service import get_or_create_user  # noqa: E402

get_settings.cache_clear()

# Well-known throwaway keys; never funded anywhere.
SIGNER_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
RUNNER_KEY = "0x" + "a1" * 32
OTHER_KEY = "0x" + "b2" * 32
PROFILE_NFT_ADDRESS = "0x" + "5a" * 20
CHAIN_ID = 84532

RUNNER_ADDRESS = Account.from_key(RUNNER_KEY).address.lower()


class FakeNonceReader:
    """In-memory stand-in for the profile contract's nonces() view."""

    def __init__(self, value: int = 0, *, error: Exception | None = None, delay: float = 0.0) -> None:
        self.value = value
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    async def get_nonce(self, address: str) -> int:
        self.calls.append(address)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.value


def make_submission(
    wallet_address: str = RUNNER_ADDRESS,
    distance_meters: float = 10000,
    duration_seconds: float = 3000,
    end_time: datetime | None = None,
    device_hash: str | None = "device-abc",
) -> RunSubmission:
    """A plausible 10 km run at 5:00/km ending ``end_time`` (default: now)."""
    end = end_time or datetime.now(timezone.utc)
    return RunSubmission(
        wallet_address=wallet_address,
        distance_meters=distance_meters,
        duration_seconds=duration_seconds,
        start_time=end - timedelta(seconds=duration_seconds if duration_seconds > 0 else 60),
        end_time=end,
        device_hash=device_hash,
    )


def run_payload(**overrides: object) -> dict[str, object]:
    """JSON body for POST /api/v1/run/submit."""
    end = datetime.now(timezone.utc)
    body: dict[str, object] = {
        "walletAddress": RUNNER_ADDRESS,
        "distanceMeters": 10000,
        "durationSeconds": 3000,
        "startTime": (end - timedelta(seconds=3000)).isoformat(),
        "endTime": end.isoformat(),
        "deviceHash": "device-abc",
    }
    body.update(overrides)
    return body


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """Fresh SQLite database file with every table created."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'runera.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for test setup and assertions."""
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def fake_redis() -> AsyncGenerator[fakeredis.FakeAsyncRedis, None]:
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    set_redis(client)
    yield client
    set_redis(None)
    await client.aclose()


@pytest.fixture
def signer() -> AttestationSigner:
    return AttestationSigner(SIGNER_KEY, CHAIN_ID, PROFILE_NFT_ADDRESS)


@pytest.fixture
def make_coordinator() -> Callable[..., RunSubmissionCoordinator]:
    """Build a coordinator with optional signer and nonce reader."""

    def _make(
        signer: AttestationSigner | None = None,
        reader: FakeNonceReader | None = None,
        timeout_seconds: float = 3.0,
    ) -> RunSubmissionCoordinator:
        attestation = AttestationService(signer, NonceReconciler(reader, timeout_seconds))
        return RunSubmissionCoordinator(attestation)

    return _make


@pytest.fixture
def coordinator(make_coordinator: Callable[..., RunSubmissionCoordinator]) -> RunSubmissionCoordinator:
    """Coordinator with attestation disabled."""
    return make_coordinator()


@pytest.fixture
def app(coordinator: RunSubmissionCoordinator) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_coordinator] = lambda: coordinator
    return application


@pytest_asyncio.fixture
async def client(
    app: FastAPI,
    database: None,
    fake_redis: fakeredis.FakeAsyncRedis,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client against a fresh database and in-memory Redis."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, db_session: AsyncSession) -> AsyncClient:
    """Client carrying a session token for RUNNER_ADDRESS."""
    user, _ = await get_or_create_user(db_session, RUNNER_ADDRESS)
    await db_session.commit()
    client.headers["Authorization"] = f"Bearer {create_access_token(user.id, user.wallet_address)}"
    return client
