"""
Pytest fixtures for the proforma engine test suite.

Provides:
- Structured logging configured once per session, with log capture
- A deterministic clock and a lifecycle service built on it
- Sample revenue and cost items and a submittable draft PJO
- An in-memory SQLite session for storage boundary tests
"""

import json
import logging
from datetime import datetime, UTC
from io import StringIO

import pytest

from logistics_config import clear_settings_cache
from logistics_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from logistics_kernel.domain.clock import DeterministicClock
from logistics_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from logistics_modules.proforma import (
    CostCategory,
    CostItem,
    ProformaConfig,
    ProformaJobOrder,
    ProformaLifecycle,
    RevenueItem,
)
from tests.factories import make_cost_item, make_pjo, make_revenue_item

FIXED_NOW = datetime(2025, 3, 14, 9, 30, tzinfo=UTC)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture logistics_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, lifecycle, draft_pjo):
            lifecycle.submit_for_approval(draft_pjo)
            logs = captured_logs()
            assert any(r["message"] == "workflow_transition" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("logistics_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock, config and service
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def config() -> ProformaConfig:
    clear_settings_cache()
    return ProformaConfig.with_defaults()


@pytest.fixture
def lifecycle(clock, config) -> ProformaLifecycle:
    return ProformaLifecycle(clock=clock, config=config)


# =============================================================================
# Sample data
# =============================================================================


@pytest.fixture
def revenue_items() -> list[RevenueItem]:
    return [
        make_revenue_item(),
        make_revenue_item(description="Port handling", quantity="1", unit_price="750000", unit="lot"),
    ]


@pytest.fixture
def cost_items() -> list[CostItem]:
    return [
        make_cost_item(estimated="2000000"),
        make_cost_item(estimated="500000", category=CostCategory.PORT_CHARGES,
                       description="Terminal handling charge"),
    ]


@pytest.fixture
def draft_pjo(revenue_items, cost_items) -> ProformaJobOrder:
    """A draft PJO that passes submission validation.

    Revenue 3,750,000; estimated cost 2,500,000.
    """
    return make_pjo(revenue_items, cost_items)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def session():
    """Session on a fresh in-memory SQLite database."""
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    db_session = get_session()
    yield db_session
    db_session.rollback()
    db_session.close()
    drop_tables()
    reset_engine()
