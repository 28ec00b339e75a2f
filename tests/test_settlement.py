"""Tests for settlement planning."""

import random

import pytest
from conftest import usd

from splitkit import ledger
from splitkit.errors import IntegrityError, IntegrityErrorKind
from splitkit.models import Balance, Group, Transfer
from splitkit.money import CurrencyMismatchError, Money
from splitkit.settlement import plan, settle_group, total_transfer_volume


def apply(balances: dict[str, int], transfers: list[Transfer]) -> dict[str, int]:
    """Apply transfers to minor-unit balances as payments would."""
    result = dict(balances)
    for t in transfers:
        result[t.from_id] += t.amount.minor
        result[t.to_id] -= t.amount.minor
    return result


def as_money(balances: dict[str, int]) -> dict[str, Money]:
    return {m: Money(minor=v, currency="USD") for m, v in balances.items()}


class TestPlan:
    """Tests for the greedy planner."""

    def test_one_creditor_two_debtors(self) -> None:
        """Test largest debtor pays first."""
        transfers = plan({"A": usd("50"), "B": usd("-30"), "C": usd("-20")})
        assert transfers == [
            Transfer(from_id="B", to_id="A", amount=usd("30")),
            Transfer(from_id="C", to_id="A", amount=usd("20")),
        ]

    def test_accepts_balance_models(self) -> None:
        """Test Balance values work the same as Money."""
        balances = {
            "A": Balance(member_id="A", amount=usd("10")),
            "B": Balance(member_id="B", amount=usd("-10")),
        }
        assert plan(balances) == [Transfer(from_id="B", to_id="A", amount=usd("10"))]

    def test_all_zero(self) -> None:
        """Test settled balances need no transfers."""
        assert plan({"A": usd("0"), "B": usd("0")}) == []

    def test_empty(self) -> None:
        """Test no balances need no transfers."""
        assert plan({}) == []

    def test_ties_break_by_smallest_id(self) -> None:
        """Test equal amounts are matched in id order."""
        transfers = plan({"b": usd("10"), "a": usd("10"), "d": usd("-10"), "c": usd("-10")})
        assert isinstance(transfers, list)
        assert [(t.from_id, t.to_id) for t in transfers] == [("c", "a"), ("d", "b")]

    def test_partial_matches(self) -> None:
        """Test a creditor can be paid by several debtors and vice versa."""
        transfers = plan({"a": usd("70"), "b": usd("30"), "c": usd("-60"), "d": usd("-40")})
        assert isinstance(transfers, list)
        assert [(t.from_id, t.to_id, t.amount.minor) for t in transfers] == [
            ("c", "a", 6000),
            ("d", "b", 3000),
            ("d", "a", 1000),
        ]

    def test_unbalanced_rejected(self) -> None:
        """Test balances that do not sum to zero are refused."""
        result = plan({"A": usd("50"), "B": usd("-30")})
        assert isinstance(result, IntegrityError)
        assert result.kind == IntegrityErrorKind.UNBALANCED
        assert result.actual == usd("20").amount

    def test_mixed_currency_raises(self) -> None:
        """Test planning refuses to mix currencies."""
        with pytest.raises(CurrencyMismatchError):
            plan({"A": usd("1"), "B": Money.of("-1", "EUR")})

    @pytest.mark.parametrize("seed", range(25))
    def test_plan_settles_everything(self, seed: int) -> None:
        """Test applying the plan zeroes every balance with few transfers."""
        rng = random.Random(seed)
        members = [f"m{i}" for i in range(rng.randint(2, 10))]
        balances = {m: rng.randint(-10_000, 10_000) for m in members[:-1]}
        balances[members[-1]] = -sum(balances.values())

        transfers = plan(as_money(balances))
        assert isinstance(transfers, list)
        assert all(t.amount.is_positive() for t in transfers)
        assert all(t.from_id != t.to_id for t in transfers)
        assert set(apply(balances, transfers).values()) <= {0}

        nonzero = sum(1 for v in balances.values() if v != 0)
        assert len(transfers) <= max(nonzero - 1, 0)

    def test_deterministic(self) -> None:
        """Test identical input gives identical output."""
        balances = {"x": usd("12.34"), "y": usd("-5.67"), "z": usd("-6.67")}
        assert plan(balances) == plan(dict(reversed(list(balances.items()))))


class TestSettleGroup:
    """Tests for planning directly from a group."""

    def test_fixture_group(self, group_with_expenses: Group) -> None:
        """Test the shared fixture settles as documented."""
        transfers = settle_group(group_with_expenses)
        assert transfers == [
            Transfer(from_id="c", to_id="a", amount=usd("86")),
            Transfer(from_id="b", to_id="a", amount=usd("64")),
        ]

    def test_recording_plan_settles_group(self, group_with_expenses: Group) -> None:
        """Test accepting every transfer leaves all members at zero."""
        transfers = settle_group(group_with_expenses)
        assert isinstance(transfers, list)

        group = group_with_expenses
        for transfer in transfers:
            result = ledger.accept_transfer(group, transfer)
            assert isinstance(result, tuple)
            group = result[0]

        balances = ledger.group_balances(group)
        assert all(b.amount.is_zero() for b in balances.values())
        assert settle_group(group) == []

    def test_total_volume(self, group_with_expenses: Group) -> None:
        """Test the sum of planned transfers."""
        transfers = settle_group(group_with_expenses)
        assert total_transfer_volume(transfers, "USD") == usd("150")
