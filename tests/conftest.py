"""Shared fixtures and helpers for tests."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from tests.fixtures import petstore

_REPO_ROOT = Path(__file__).parent.parent
_FIXTURES = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-marker: every test in this tree is a fast unit test
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_path() -> Path:
    """Return the path to the pet store contract document."""
    return _FIXTURES / "petstore.md"


@pytest.fixture
def petstore_source(petstore_path: Path) -> str:
    return petstore_path.read_text(encoding="utf-8")


@pytest.fixture(autouse=True)
def _reset_handler_calls() -> Iterator[None]:
    petstore.CALLS.clear()
    yield
    petstore.CALLS.clear()
