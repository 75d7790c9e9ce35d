from __future__ import annotations

from collections.abc import Generator, Hashable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from phaseplan.api.routes.capacity_plan import get_fte_calculator
from phaseplan.db.base import Base
from phaseplan.db.dependencies import get_db_session
import phaseplan.models.entities  # noqa: F401
from phaseplan.main import create_app
from phaseplan.models.entities import Client, Estimate
from phaseplan.planning.aggregation import FTEInterval, FTEResult
from phaseplan.planning.intervals import TOTAL_SLOTS, IntervalsByPhase, TotalDays

TEST_TABLES = [
    Client.__table__,
    Estimate.__table__,
]


class FakeFTECalculator:
    """One functional FTE per phase covering a slot."""

    def __init__(self) -> None:
        self.calls: list[tuple[Hashable, TotalDays, IntervalsByPhase]] = []
        self.fail_for: set[Hashable] = set()

    def compute_fte(
        self,
        estimate_id: Hashable,
        total_days: TotalDays,
        intervals_by_phase: IntervalsByPhase,
    ) -> FTEResult:
        self.calls.append((estimate_id, total_days, dict(intervals_by_phase)))
        if estimate_id in self.fail_for:
            raise RuntimeError("calculator unavailable")
        intervals = []
        for slot in range(1, TOTAL_SLOTS + 1):
            covering = sum(1 for value in intervals_by_phase.values() if value is not None and value.contains(slot))
            intervals.append(
                FTEInterval(
                    fte_categories={"functional": float(covering)},
                    hours_categories={"functional": covering * 8.0},
                    fte_functional=float(covering),
                    hours_functional=covering * 8.0,
                )
            )
        return FTEResult(intervals=intervals, distribution_categories=["functional"])


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=TEST_TABLES)


@pytest.fixture()
def fte_calculator() -> FakeFTECalculator:
    return FakeFTECalculator()


@pytest.fixture()
def client(db_session: Session, fte_calculator: FakeFTECalculator) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    app.dependency_overrides[get_fte_calculator] = lambda: fte_calculator
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
