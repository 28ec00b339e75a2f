"""Split allocation: turn a total and a split policy into exact per-member shares.

Pure functions, no I/O. Shares always sum to the total to the minor unit.
"""

import datetime as dt
import logging
from collections.abc import Sequence
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

from .errors import PolicyParametersError, SplitError, SplitErrorKind
from .money import CENT, CurrencyMismatchError, Money, round_half_up, sum_money
from .models import (
    EqualSplit,
    ExactSplit,
    Expense,
    ExpenseShare,
    Participant,
    PercentageSplit,
    SharesSplit,
    SplitMethod,
    SplitPolicy,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
PERCENT_TOLERANCE = Decimal("0.01")
EXACT_TOLERANCE_MINOR = 1  # ±0.01 in a two-digit currency

ParticipantLike = str | Participant


def as_participants(participants: Sequence[ParticipantLike]) -> list[Participant]:
    """Normalize member ids and Participant objects to Participants, keeping order."""
    return [p if isinstance(p, Participant) else Participant(id=p) for p in participants]


def _policy_parameters(policy: SplitPolicy) -> dict | None:
    if isinstance(policy, EqualSplit):
        return None
    if isinstance(policy, PercentageSplit):
        return policy.percentages
    if isinstance(policy, ExactSplit):
        return policy.amounts
    if isinstance(policy, SharesSplit):
        return policy.weights
    raise TypeError(f"Unsupported split policy: {policy!r}")


def validate_allocation(
    total: Money,
    policy: SplitPolicy,
    participants: Sequence[ParticipantLike],
) -> SplitError | None:
    """
    Check a split request without allocating anything.

    Args:
        total: Expense total
        policy: Split policy with its per-member parameters
        participants: Ordered member ids or Participants

    Returns:
        The first rule that fails, or None if the request is valid

    Raises:
        PolicyParametersError: If a policy that needs parameters has none at all
        CurrencyMismatchError: If exact amounts are not in the total's currency
    """
    if not total.is_positive():
        return SplitError(
            kind=SplitErrorKind.NON_POSITIVE_TOTAL,
            message="Total amount must be positive",
            actual=total.amount,
        )

    people = as_participants(participants)
    if not people:
        return SplitError(
            kind=SplitErrorKind.NO_PARTICIPANTS,
            message="At least one participant is required",
        )

    ids = [p.id for p in people]
    seen: set[str] = set()
    for member_id in ids:
        if member_id in seen:
            return SplitError(
                kind=SplitErrorKind.DUPLICATE_PARTICIPANT,
                message=f"Participant {member_id} is listed more than once",
                member_id=member_id,
            )
        seen.add(member_id)

    params = _policy_parameters(policy)
    if params is None:
        return None
    if not params:
        raise PolicyParametersError(f"{policy.method} split requires per-member parameters")

    for member_id in ids:
        if member_id not in params:
            return SplitError(
                kind=SplitErrorKind.MISSING_PARAMETER,
                message=f"No {policy.method} value given for {member_id}",
                member_id=member_id,
            )
    for member_id in params:
        if member_id not in seen:
            return SplitError(
                kind=SplitErrorKind.UNKNOWN_PARAMETER,
                message=f"{member_id} has a {policy.method} value but is not a participant",
                member_id=member_id,
            )

    if isinstance(policy, PercentageSplit):
        return _validate_percentages(policy, ids)
    if isinstance(policy, ExactSplit):
        return _validate_exact(policy, ids, total)
    return _validate_weights(policy, ids)


def _validate_percentages(policy: PercentageSplit, ids: list[str]) -> SplitError | None:
    for member_id in ids:
        pct = policy.percentages[member_id]
        if pct < 0 or pct > HUNDRED:
            return SplitError(
                kind=SplitErrorKind.PERCENTAGE_OUT_OF_RANGE,
                message="All percentages must be between 0 and 100",
                member_id=member_id,
                actual=pct,
            )
    pct_sum = sum((policy.percentages[m] for m in ids), Decimal("0"))
    if abs(pct_sum - HUNDRED) > PERCENT_TOLERANCE:
        return SplitError(
            kind=SplitErrorKind.PERCENTAGE_SUM,
            message=f"Percentages must sum to 100% (currently {pct_sum}%)",
            expected=HUNDRED,
            actual=pct_sum,
        )
    return None


def _validate_exact(policy: ExactSplit, ids: list[str], total: Money) -> SplitError | None:
    for member_id in ids:
        amount = policy.amounts[member_id]
        if amount.currency != total.currency:
            raise CurrencyMismatchError(
                f"Exact amount for {member_id} is in {amount.currency}, "
                f"expense is in {total.currency}"
            )
        if amount.is_negative():
            return SplitError(
                kind=SplitErrorKind.NEGATIVE_AMOUNT,
                message="All amounts must be non-negative",
                member_id=member_id,
                actual=amount.amount,
            )
    exact_sum = sum_money((policy.amounts[m] for m in ids), total.currency)
    if abs(exact_sum.minor - total.minor) > EXACT_TOLERANCE_MINOR:
        return SplitError(
            kind=SplitErrorKind.EXACT_SUM,
            message=f"Exact amounts must sum to total amount ({exact_sum.amount} != {total.amount})",
            expected=total.amount,
            actual=exact_sum.amount,
        )
    return None


def _validate_weights(policy: SharesSplit, ids: list[str]) -> SplitError | None:
    for member_id in ids:
        weight = policy.weights[member_id]
        if weight <= 0:
            return SplitError(
                kind=SplitErrorKind.NON_POSITIVE_WEIGHT,
                message="All share counts must be positive integers",
                member_id=member_id,
                actual=Decimal(weight),
            )
    if sum(policy.weights[m] for m in ids) <= 0:
        return SplitError(
            kind=SplitErrorKind.ZERO_TOTAL_WEIGHT,
            message="Total shares must be greater than zero",
        )
    return None


def _settle_remainder(amounts: list[int], total: int) -> list[int]:
    """
    Make `amounts` sum to `total` exactly.

    A shortfall goes to the last participant. An overshoot is taken back from
    the end of the list, never pushing a share below zero.
    """
    result = list(amounts)
    diff = total - sum(result)
    if diff >= 0:
        result[-1] += diff
        return result
    excess = -diff
    for i in range(len(result) - 1, -1, -1):
        taken = min(result[i], excess)
        result[i] -= taken
        excess -= taken
        if excess == 0:
            break
    return result


def equal_amounts(total: int, n: int) -> list[int]:
    """Split `total` minor units n ways; the first `total % n` get one extra unit."""
    base, remainder = divmod(total, n)
    return [base + 1 if i < remainder else base for i in range(n)]


def proportional_amounts(total: int, weights: Sequence[Decimal], denominator: Decimal) -> list[int]:
    """
    Split `total` minor units in proportion to `weights / denominator`.

    Every entry but the last is rounded half-up; the last takes the remainder.
    """
    provisional = [round_half_up(Decimal(total) * w / denominator) for w in weights[:-1]]
    provisional.append(0)
    return _settle_remainder(provisional, total)


def share_percentage(amount: int, total: int) -> Decimal:
    """Display percentage of a share, rounded to two places."""
    return (Decimal(amount) * HUNDRED / Decimal(total)).quantize(CENT, rounding=ROUND_HALF_UP)


def allocate(
    total: Money,
    policy: SplitPolicy,
    participants: Sequence[ParticipantLike],
) -> dict[str, ExpenseShare] | SplitError:
    """
    Allocate an expense total among participants under a split policy.

    Args:
        total: Expense total, strictly positive
        policy: Split policy with its per-member parameters
        participants: Ordered member ids or Participants; order decides who
            receives leftover minor units

    Returns:
        Member id -> ExpenseShare in participant order, or the SplitError
        describing the first failed rule
    """
    error = validate_allocation(total, policy, participants)
    if error is not None:
        logger.debug("Rejected %s split of %s: %s", policy.method, total, error.message)
        return error

    people = as_participants(participants)
    ids = [p.id for p in people]

    if isinstance(policy, EqualSplit):
        amounts = equal_amounts(total.minor, len(ids))
    elif isinstance(policy, PercentageSplit):
        amounts = proportional_amounts(
            total.minor, [policy.percentages[m] for m in ids], HUNDRED
        )
    elif isinstance(policy, SharesSplit):
        weights = [Decimal(policy.weights[m]) for m in ids]
        amounts = proportional_amounts(total.minor, weights, sum(weights, Decimal("0")))
    elif isinstance(policy, ExactSplit):
        amounts = _settle_remainder([policy.amounts[m].minor for m in ids], total.minor)
    else:
        raise TypeError(f"Unsupported split policy: {policy!r}")

    shares = {
        person.id: ExpenseShare(
            member_id=person.id,
            display_name=person.display_name,
            amount=Money(minor=minor, currency=total.currency),
            percentage=share_percentage(minor, total.minor),
        )
        for person, minor in zip(people, amounts)
    }
    logger.debug("Allocated %s across %d participants (%s)", total, len(ids), policy.method)
    return shares


def build_expense(
    group_id: str,
    description: str,
    payer_id: str,
    total: Money,
    policy: SplitPolicy,
    participants: Sequence[ParticipantLike],
    date: dt.date | None = None,
    notes: str = "",
) -> Expense | SplitError:
    """Allocate and wrap the result in a new Expense."""
    shares = allocate(total, policy, participants)
    if isinstance(shares, SplitError):
        return shares
    return Expense(
        group_id=group_id,
        description=description,
        payer_id=payer_id,
        total=total,
        policy=policy,
        shares=list(shares.values()),
        date=date or dt.date.today(),
        notes=notes,
    )


def _rescale_exact(policy: ExactSplit, old_total: Money, new_total: Money) -> ExactSplit:
    ids = list(policy.amounts)
    weights = [Decimal(policy.amounts[m].minor) for m in ids]
    minors = proportional_amounts(new_total.minor, weights, Decimal(old_total.minor))
    return ExactSplit(
        amounts={m: Money(minor=v, currency=new_total.currency) for m, v in zip(ids, minors)}
    )


def resplit(
    expense: Expense,
    new_total: Money | None = None,
    policy: SplitPolicy | None = None,
    participants: Sequence[ParticipantLike] | None = None,
) -> Expense | SplitError:
    """
    Recompute every share of an expense from scratch.

    Unspecified inputs are taken from the expense. When only the total changes
    under an exact split, the exact amounts are rescaled in proportion to the
    old ones before allocating.

    Returns:
        A new Expense with the same id, or a SplitError
    """
    total = new_total if new_total is not None else expense.total
    names = {s.member_id: s.display_name for s in expense.shares}
    requested = list(names) if participants is None else participants
    # Plain ids already on the expense keep their display names.
    people = [
        Participant(id=p, display_name=names.get(p, p)) if isinstance(p, str) else p
        for p in requested
    ]
    new_policy = policy if policy is not None else expense.policy
    if (
        policy is None
        and participants is None
        and isinstance(new_policy, ExactSplit)
        and total != expense.total
    ):
        new_policy = _rescale_exact(new_policy, expense.total, total)

    shares = allocate(total, new_policy, people)
    if isinstance(shares, SplitError):
        return shares
    return expense.model_copy(
        update={"total": total, "policy": new_policy, "shares": list(shares.values())}
    )


def default_policy(
    method: SplitMethod | str,
    participants: Sequence[ParticipantLike],
    currency: str | None = None,
) -> SplitPolicy:
    """
    Starting parameters for a split method, as a form would pre-fill them.

    Percentages are 100/n each with the remainder on the last member so they
    sum to exactly 100. Exact amounts start at zero and need a currency.
    """
    method = SplitMethod(method)
    ids = [p.id for p in as_participants(participants)]

    if method == SplitMethod.EQUAL:
        return EqualSplit()
    if method == SplitMethod.SHARES:
        return SharesSplit(weights={m: 1 for m in ids})
    if method == SplitMethod.EXACT:
        if currency is None:
            raise ValueError("Exact split defaults need a currency")
        return ExactSplit(amounts={m: Money.zero(currency) for m in ids})
    if not ids:
        return PercentageSplit(percentages={})
    each = (HUNDRED / len(ids)).quantize(CENT, rounding=ROUND_DOWN)
    percentages = {m: each for m in ids}
    percentages[ids[-1]] = HUNDRED - each * (len(ids) - 1)
    return PercentageSplit(percentages=percentages)


def can_modify_participants(method: SplitMethod | str) -> bool:
    """Whether members can be added or removed without re-entering every value."""
    return SplitMethod(method) in (SplitMethod.EQUAL, SplitMethod.SHARES)
