"""Pytest fixtures for testing"""

import pytest
import httpx
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from refi_gateway.api.main import create_app
from refi_gateway.api.dependencies import get_fallback_rates
from refi_gateway.domain.models import EngineInput, RateData
from refi_gateway.infrastructure.cache import TTLCache
from refi_gateway.infrastructure.clients.pmms import PMMSClient
from refi_gateway.infrastructure.database.models import Base
from refi_gateway.infrastructure.database.session import get_db
from refi_gateway.infrastructure.rate_service import RateProvenanceService


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PMMS_URL = "https://pmms.test/pmms"


def _pmms_html(rate_30: str = "6.30", rate_15: str = "5.49") -> str:
    """Minimal page shaped like the PMMS survey results"""
    return (
        "<html><body>"
        f"<div><span>30-Year Fixed Rate</span> <strong>{rate_30}%</strong></div>"
        f"<div><span>15-Year Fixed Rate</span> <strong>{rate_15}%</strong></div>"
        "</body></html>"
    )


def _pmms_transport(html: str = "", status_code: int = 200, error: Exception | None = None) -> httpx.MockTransport:
    """MockTransport returning a fixed PMMS response, or raising error"""

    def handler(request: httpx.Request) -> httpx.Response:
        if error is not None:
            raise error
        return httpx.Response(status_code, text=html or _pmms_html())

    return httpx.MockTransport(handler)


class FakeClock:
    """Manually advanced monotonic clock for TTL tests"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fallback_rates() -> RateData:
    return RateData(fetched_at="2026-10-15T16:00:00.000Z", fixed_30yr=6.3, fixed_15yr=5.49)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_rate_service(clock: FakeClock) -> Callable[..., RateProvenanceService]:
    """Build a provenance service backed by a mocked PMMS page"""

    def _make(transport: httpx.MockTransport | None = None) -> RateProvenanceService:
        client = PMMSClient(url=PMMS_URL, timeout=1.0, transport=transport or _pmms_transport())
        return RateProvenanceService(client=client, cache=TTLCache(21600, clock=clock), max_change_pts=3.0)

    return _make


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session, make_rate_service, fallback_rates: RateData) -> TestClient:
    """Create FastAPI test client with test database and a mocked PMMS page"""
    app = create_app(rate_service=make_rate_service())

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_fallback_rates] = lambda: fallback_rates
    return TestClient(app)


@pytest.fixture
def make_input() -> Callable[..., EngineInput]:
    """EngineInput builder with typical refinance rates as defaults"""

    def _make(**overrides) -> EngineInput:
        values = dict(
            refi_rate_same_term=0.0575,
            refi_rate_15yr=0.0525,
            refi_rate_30yr=0.06,
        )
        values.update(overrides)
        return EngineInput(**values)

    return _make


@pytest.fixture
def pmms_html() -> Callable[..., str]:
    return _pmms_html


@pytest.fixture
def pmms_transport() -> Callable[..., httpx.MockTransport]:
    return _pmms_transport


@pytest.fixture
def session_factory(db: Session) -> sessionmaker:
    """Session factory bound to the test database, for code that opens its own sessions"""
    return TestingSessionLocal
