"""Settlement planning: turn net balances into a short list of transfers."""

import logging
from collections.abc import Mapping, Sequence

from .errors import IntegrityError, IntegrityErrorKind
from .ledger import group_balances
from .money import CurrencyMismatchError, Money, sum_money
from .models import Balance, Group, Transfer

logger = logging.getLogger(__name__)


def _largest(parties: dict[str, int]) -> str:
    """Member with the largest remaining amount; ties go to the smallest id."""
    return min(parties, key=lambda member_id: (-parties[member_id], member_id))


def plan(balances: Mapping[str, Money | Balance]) -> list[Transfer] | IntegrityError:
    """
    Compute transfers that bring every balance to zero.

    Greedy matching: repeatedly pair the largest remaining creditor with the
    largest remaining debtor and move the smaller of the two amounts. Each
    step zeroes at least one side, so there are at most
    (#creditors + #debtors - 1) transfers. This keeps the count small but is
    not guaranteed minimal.

    Args:
        balances: Member id -> signed net balance (positive = is owed)

    Returns:
        Ordered list of transfers, or an IntegrityError if the balances do
        not sum to zero

    Raises:
        CurrencyMismatchError: If balances are in more than one currency
    """
    remaining: dict[str, int] = {}
    currency: str | None = None
    for member_id, value in balances.items():
        money = value.amount if isinstance(value, Balance) else value
        if currency is None:
            currency = money.currency
        elif money.currency != currency:
            raise CurrencyMismatchError(
                f"Balance of {member_id} is in {money.currency}, expected {currency}"
            )
        remaining[member_id] = money.minor

    if currency is None:
        return []

    imbalance = sum(remaining.values())
    if imbalance != 0:
        actual = Money(minor=imbalance, currency=currency)
        logger.warning("Refusing to plan settlement: balances sum to %s", actual)
        return IntegrityError(
            kind=IntegrityErrorKind.UNBALANCED,
            message=f"Balances sum to {actual.amount}, expected 0",
            expected=Money.zero(currency).amount,
            actual=actual.amount,
        )

    creditors = {m: v for m, v in remaining.items() if v > 0}
    debtors = {m: -v for m, v in remaining.items() if v < 0}

    transfers: list[Transfer] = []
    while creditors and debtors:
        creditor = _largest(creditors)
        debtor = _largest(debtors)
        amount = min(creditors[creditor], debtors[debtor])
        transfers.append(
            Transfer(from_id=debtor, to_id=creditor, amount=Money(minor=amount, currency=currency))
        )

        creditors[creditor] -= amount
        if creditors[creditor] == 0:
            del creditors[creditor]
        debtors[debtor] -= amount
        if debtors[debtor] == 0:
            del debtors[debtor]

    logger.debug("Planned %d transfers for %d balances", len(transfers), len(remaining))
    return transfers


def settle_group(group: Group) -> list[Transfer] | IntegrityError:
    """Net a group's balances and plan the transfers that settle them."""
    balances = group_balances(group)
    if isinstance(balances, IntegrityError):
        return balances
    return plan(balances)


def total_transfer_volume(transfers: Sequence[Transfer], currency: str) -> Money:
    """Total amount of money moved by a plan."""
    return sum_money((t.amount for t in transfers), currency)
