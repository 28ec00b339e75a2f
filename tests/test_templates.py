"""Tests for splitkit templates."""

import datetime as dt
from decimal import Decimal

from conftest import usd

from splitkit.errors import (
    IntegrityError,
    IntegrityErrorKind,
    PaymentError,
    PaymentErrorKind,
)
from splitkit.models import Balance, ExpenseShare, Transfer
from splitkit.money import Money
from splitkit.query import ExpenseStatistics
from splitkit.templates import (
    ALL_SETTLED,
    NO_EXPENSES,
    format_balances,
    format_failure,
    format_money,
    format_shares,
    format_statistics,
    format_transfers,
    get_currency_symbol,
)

NAMES = {"a": "Alice", "b": "Bob"}


class TestFormatMoney:
    """Tests for format_money."""

    def test_usd(self) -> None:
        """Test USD formatting (symbol before)."""
        assert format_money(usd("50.5")) == "$50.50"

    def test_ils(self) -> None:
        """Test ILS formatting."""
        assert format_money(Money.of("100", "ILS")) == "₪100.00"

    def test_negative_sign_first(self) -> None:
        """Test the sign goes before the symbol."""
        assert format_money(usd("-5")) == "-$5.00"

    def test_unknown_currency(self) -> None:
        """Test unknown currency uses code."""
        assert format_money(Money.of("100", "CHF")) == "CHF100.00"
        assert get_currency_symbol("chf") == "CHF"


class TestFormatShares:
    """Tests for format_shares."""

    def test_lines(self) -> None:
        """Test one line per share with percentage."""
        shares = [
            ExpenseShare(
                member_id="a", display_name="Alice", amount=usd("33.34"), percentage=Decimal("33.34")
            ),
            ExpenseShare(
                member_id="b", display_name="Bob", amount=usd("66.66"), percentage=Decimal("66.66")
            ),
        ]
        assert format_shares(shares) == "• Alice: $33.34 (33.34%)\n• Bob: $66.66 (66.66%)"


class TestFormatBalances:
    """Tests for format_balances."""

    def test_statuses(self) -> None:
        """Test owed, owing and settled wording."""
        balances = {
            "a": Balance(member_id="a", amount=usd("10")),
            "b": Balance(member_id="b", amount=usd("-10")),
            "c": Balance(member_id="c", amount=usd("0")),
        }
        result = format_balances(balances, lambda m: NAMES.get(m, m))
        assert result.splitlines() == [
            "• Alice is owed $10.00",
            "• Bob owes $10.00",
            "• c is settled up",
        ]


class TestFormatTransfers:
    """Tests for format_transfers."""

    def test_empty(self) -> None:
        """Test no transfers means everyone is settled."""
        assert format_transfers([]) == ALL_SETTLED

    def test_lines(self) -> None:
        """Test one arrow line per transfer."""
        transfers = [Transfer(from_id="b", to_id="a", amount=usd("30"))]
        assert format_transfers(transfers, NAMES.__getitem__) == "• Bob → Alice: $30.00"


class TestFormatStatistics:
    """Tests for format_statistics."""

    def test_empty(self) -> None:
        """Test empty statistics."""
        assert format_statistics(ExpenseStatistics()) == NO_EXPENSES

    def test_summary(self) -> None:
        """Test the summary block."""
        stats = ExpenseStatistics(
            count=2,
            total=usd("30"),
            average=usd("15"),
            minimum=usd("10"),
            maximum=usd("20"),
            earliest=dt.date(2024, 1, 1),
            latest=dt.date(2024, 1, 4),
            participant_count=3,
        )
        result = format_statistics(stats)
        assert "2 expense(s), total $30.00" in result
        assert "average $15.00, min $10.00, max $20.00" in result
        assert "from 2024-01-01 to 2024-01-04 (3 days), 3 participant(s)" in result


class TestFormatFailure:
    """Tests for format_failure."""

    def test_validation(self) -> None:
        """Test input problems get a warning."""
        failure = PaymentError(kind=PaymentErrorKind.SELF_PAYMENT, message="Cannot pay yourself")
        assert format_failure(failure) == "⚠️ Cannot pay yourself"

    def test_integrity(self) -> None:
        """Test stored-data problems are flagged differently."""
        failure = IntegrityError(kind=IntegrityErrorKind.UNBALANCED, message="off by 0.01")
        assert format_failure(failure) == "❌ Data problem: off by 0.01"
