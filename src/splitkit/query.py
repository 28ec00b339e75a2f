"""Search, filter, sort and summarize in-memory expense lists."""

import datetime as dt
from collections.abc import Callable, Iterable, Sequence
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from .money import Money, round_half_up
from .models import Expense


def search_expenses(expenses: Sequence[Expense], query: str) -> list[Expense]:
    """
    Case-insensitive substring search over description, amount and names.

    A blank query matches everything.
    """
    needle = query.strip().casefold()
    if not needle:
        return list(expenses)

    def matches(expense: Expense) -> bool:
        if needle in expense.description.casefold():
            return True
        if needle in str(expense.total.amount):
            return True
        if any(needle in share.display_name.casefold() for share in expense.shares):
            return True
        return needle in expense.payer_name.casefold()

    return [e for e in expenses if matches(e)]


def filter_by_date_range(
    expenses: Sequence[Expense],
    start: dt.date | None = None,
    end: dt.date | None = None,
) -> list[Expense]:
    """Keep expenses dated within [start, end]; either bound may be open."""
    return [
        e
        for e in expenses
        if (start is None or e.date >= start) and (end is None or e.date <= end)
    ]


def filter_by_participant(expenses: Sequence[Expense], member_id: str) -> list[Expense]:
    """Keep expenses the member paid for or has a share in."""
    if not member_id.strip():
        return list(expenses)
    return [
        e for e in expenses if e.payer_id == member_id or member_id in e.participant_ids()
    ]


def filter_by_amount_range(
    expenses: Sequence[Expense],
    min_amount: Money | None = None,
    max_amount: Money | None = None,
) -> list[Expense]:
    """Keep expenses whose total lies within [min_amount, max_amount]."""
    return [
        e
        for e in expenses
        if (min_amount is None or e.total >= min_amount)
        and (max_amount is None or e.total <= max_amount)
    ]


class ExpenseFilter(BaseModel):
    """A composable set of expense criteria. Unset fields do not filter."""

    query: str | None = None
    start: dt.date | None = None
    end: dt.date | None = None
    member_id: str | None = None
    min_amount: Money | None = None
    max_amount: Money | None = None

    def is_empty(self) -> bool:
        return all(
            value in (None, "")
            for value in (
                self.query,
                self.start,
                self.end,
                self.member_id,
                self.min_amount,
                self.max_amount,
            )
        )

    def check(self) -> str | None:
        """Return a message describing an inconsistent filter, or None."""
        if self.start and self.end and self.start > self.end:
            return "Start date cannot be after end date"
        if self.min_amount is not None and self.min_amount.is_negative():
            return "Minimum amount cannot be negative"
        if self.max_amount is not None and self.max_amount.is_negative():
            return "Maximum amount cannot be negative"
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            return "Minimum amount cannot be greater than maximum amount"
        return None

    def apply(self, expenses: Sequence[Expense]) -> list[Expense]:
        result = list(expenses)
        if self.query:
            result = search_expenses(result, self.query)
        result = filter_by_date_range(result, self.start, self.end)
        if self.member_id:
            result = filter_by_participant(result, self.member_id)
        return filter_by_amount_range(result, self.min_amount, self.max_amount)


class SortField(str, Enum):
    """Fields expenses can be sorted by."""

    DATE = "date"
    AMOUNT = "amount"
    DESCRIPTION = "description"
    PAYER = "payer"


_SORT_KEYS: dict[SortField, Callable[[Expense], Any]] = {
    SortField.DATE: lambda e: e.date,
    SortField.AMOUNT: lambda e: e.total.minor,
    SortField.DESCRIPTION: lambda e: e.description.casefold(),
    SortField.PAYER: lambda e: e.payer_name.casefold(),
}


class SortKey(BaseModel):
    """One sort criterion. Descending by default, newest/largest first."""

    model_config = ConfigDict(frozen=True)

    field: SortField
    ascending: bool = False


def sort_expenses(
    expenses: Sequence[Expense],
    keys: SortKey | Sequence[SortKey],
) -> list[Expense]:
    """
    Sort by several keys in priority order.

    Ties left after every key are broken by expense id, ascending, so the
    result does not depend on input order.
    """
    if isinstance(keys, SortKey):
        keys = [keys]
    result = sorted(expenses, key=lambda e: str(e.id))
    # Stable sorts applied from the least significant key up.
    for key in reversed(keys):
        result.sort(key=_SORT_KEYS[key.field], reverse=not key.ascending)
    return result


class ExpenseStatistics(BaseModel):
    """Summary figures for a list of expenses."""

    count: int = 0
    total: Money | None = None
    average: Money | None = None
    minimum: Money | None = None
    maximum: Money | None = None
    earliest: dt.date | None = None
    latest: dt.date | None = None
    participant_count: int = 0

    @property
    def span_days(self) -> int:
        if self.earliest is None or self.latest is None:
            return 0
        return (self.latest - self.earliest).days


def expense_statistics(expenses: Iterable[Expense]) -> ExpenseStatistics:
    """Count, sum, average, extremes, date span and distinct members in one pass."""
    count = 0
    total: Money | None = None
    minimum: Money | None = None
    maximum: Money | None = None
    earliest: dt.date | None = None
    latest: dt.date | None = None
    people: set[str] = set()

    for expense in expenses:
        amount = expense.total
        count += 1
        total = amount if total is None else total + amount
        minimum = amount if minimum is None or amount < minimum else minimum
        maximum = amount if maximum is None or amount > maximum else maximum
        earliest = expense.date if earliest is None or expense.date < earliest else earliest
        latest = expense.date if latest is None or expense.date > latest else latest
        people.add(expense.payer_id)
        people.update(expense.participant_ids())

    if total is None:
        return ExpenseStatistics()

    average = Money(
        minor=round_half_up(Decimal(total.minor) / count), currency=total.currency
    )
    return ExpenseStatistics(
        count=count,
        total=total,
        average=average,
        minimum=minimum,
        maximum=maximum,
        earliest=earliest,
        latest=latest,
        participant_count=len(people),
    )
