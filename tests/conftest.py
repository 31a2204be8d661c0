"""
Pytest fixtures for the quoter test suite.

Provides:
- Structured logging configured for every test, plus a log capture fixture
- The bundled standard rate card, as raw YAML data and as a RateCard
- The reference panel-letters quote item
- Database sessions for service tests

Environment Variables:
- DATABASE_URL: database connection URL.  Defaults to an in-memory SQLite
  database; set a postgresql:// URL to run the service tests on PostgreSQL.
"""

import copy
import json
import logging
import os
from io import StringIO
from pathlib import Path
from typing import Any, Callable, Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

import quoter_config
from quoter_config.loader import load_yaml_file, parse_rate_card
from quoter_config.schema import RateCard
from quoter_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from quoter_kernel.domain.clock import DeterministicClock
from quoter_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

# Test actor ID for all pricing set operations
TEST_ACTOR_ID = uuid4()

STANDARD_SET_ID = "standard-2025"
SETS_DIR = Path(quoter_config.__file__).parent / "sets"
STANDARD_CARD_PATH = SETS_DIR / "standard_2025" / "rate_card.yaml"

DEFAULT_DATABASE_URL = "sqlite:///:memory:"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
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
    Capture quoter logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, rate_card):
            calculate(item, rate_card)
            logs = captured_logs()
            assert any(r["message"] == "QUOTER_ENGINE_TRACE" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("quoter")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Rate card fixtures
# =============================================================================


@pytest.fixture(scope="session")
def standard_card_data() -> dict[str, Any]:
    """The bundled standard rate card YAML, parsed but not validated."""
    return load_yaml_file(STANDARD_CARD_PATH)


@pytest.fixture
def card_data(standard_card_data) -> dict[str, Any]:
    """A private, mutable copy of the standard rate card data."""
    return copy.deepcopy(standard_card_data)


@pytest.fixture(scope="session")
def rate_card(standard_card_data) -> RateCard:
    return parse_rate_card(standard_card_data)


@pytest.fixture
def make_card(card_data) -> Callable[..., RateCard]:
    """
    Build a RateCard from the standard data with some rows replaced or dropped.

    Usage::

        card = make_card(transformers=[{...}, {...}])
        card = make_card(drop=("letter_prices", lambda r: r["height_mm"] == 200))
    """

    def _make(drop: tuple[str, Callable[[dict], bool]] | None = None, **tables: list[dict]) -> RateCard:
        data = copy.deepcopy(card_data)
        for table, rows in tables.items():
            data["tables"][table] = rows
        if drop is not None:
            table, predicate = drop
            data["tables"][table] = [r for r in data["tables"][table] if not predicate(r)]
        return parse_rate_card(data)

    return _make


@pytest.fixture
def scenario_item() -> dict[str, Any]:
    """
    Reference quote item.

    1200x600 Aluminium 3mm panel on a 2.4 x 1.2 sheet, powder coated, with
    five 200mm powder-coated fabricated letters, unlit, 4 hours of labour
    and 20% markup.  Prices to 56060 pence on the standard rate card.
    """
    return {
        "width_mm": 1200,
        "height_mm": 600,
        "material": "Aluminium 3mm",
        "sheet_size": "2.4 x 1.2",
        "finish": "Powder Coating",
        "letter_sets": [
            {"letter_type": "Fabricated", "finish": "Powder Coating", "height_mm": 200, "qty": 5},
        ],
        "illumination": False,
        "labour_hours": {"router": 1, "fabrication": 2, "assembly": 1},
        "markup_percent": 20,
    }


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


@pytest.fixture(scope="session")
def db_engine():
    """Create the schema once per test session."""
    engine = init_engine_from_url(get_database_url(), echo=False)
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """
    Function-scoped session.  Services only flush, so rolling back at the
    end leaves the schema empty for the next test.
    """
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def test_actor_id():
    return TEST_ACTOR_ID


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()
