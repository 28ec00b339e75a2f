"""Shared test fixtures for splitkit tests."""

import datetime as dt
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from splitkit import ledger
from splitkit.models import EqualSplit, Group, Participant, PercentageSplit
from splitkit.money import Money
from splitkit.store import GroupStore


def usd(value: str) -> Money:
    """Shorthand for a USD amount."""
    return Money.of(value, "USD")


@pytest.fixture
def members() -> list[Participant]:
    """Three members with display names."""
    return [
        Participant(id="a", display_name="Alice"),
        Participant(id="b", display_name="Bob"),
        Participant(id="c", display_name="Carol"),
    ]


@pytest.fixture
def sample_group(members: list[Participant]) -> Group:
    """Create an empty group for testing."""
    return Group(id="trip", name="Beach Trip", currency="USD", members=members)


@pytest.fixture
def group_with_expenses(sample_group: Group) -> Group:
    """
    A group with two expenses and one payment.

    Alice paid 300.00 for dinner, split equally (100.00 each).
    Bob paid 90.00 for gas, split 60/40 between Bob and Carol.
    Carol paid Alice 50.00.
    """
    result = ledger.add_expense(
        sample_group,
        "Dinner",
        "a",
        usd("300.00"),
        EqualSplit(),
        date=dt.date(2024, 7, 1),
    )
    assert isinstance(result, tuple)
    group, _ = result

    result = ledger.add_expense(
        group,
        "Gas",
        "b",
        usd("90.00"),
        PercentageSplit(percentages={"b": 60, "c": 40}),
        participants=["b", "c"],
        date=dt.date(2024, 7, 3),
    )
    group, _ = result

    group, _ = ledger.add_payment(group, "c", "a", usd("50.00"), date=dt.date(2024, 7, 5))
    return group


@pytest.fixture
def temp_state_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for state files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store(temp_state_dir: Path) -> GroupStore:
    """Create a GroupStore with a temporary state directory."""
    return GroupStore(temp_state_dir)
