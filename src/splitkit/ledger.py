"""Pure ledger logic for groups: payments and balance netting. No I/O, no side effects."""

import datetime as dt
import logging
from collections.abc import Iterable, Sequence

from .allocator import ParticipantLike, build_expense
from .errors import (
    IntegrityError,
    IntegrityErrorKind,
    PaymentError,
    PaymentErrorKind,
    SplitError,
    SplitErrorKind,
)
from .money import CurrencyMismatchError, Money, sum_money
from .models import Balance, Expense, Group, Participant, Payment, SplitPolicy, Transfer

logger = logging.getLogger(__name__)


def validate_payment(
    payer_id: str,
    recipient_id: str,
    amount: Money,
    members: Iterable[str] | None = None,
) -> PaymentError | None:
    """
    Check a payment before it is recorded.

    Args:
        payer_id: Who pays
        recipient_id: Who receives
        amount: How much, must be positive
        members: Optional group member ids both parties must belong to

    Returns:
        The first rule that fails, or None
    """
    if payer_id == recipient_id:
        return PaymentError(
            kind=PaymentErrorKind.SELF_PAYMENT,
            message="Cannot make payment to yourself",
            member_id=payer_id,
        )
    if not amount.is_positive():
        return PaymentError(
            kind=PaymentErrorKind.NON_POSITIVE_AMOUNT,
            message="Payment amount must be positive",
        )
    if members is not None:
        known = set(members)
        for member_id in (payer_id, recipient_id):
            if member_id not in known:
                return PaymentError(
                    kind=PaymentErrorKind.UNKNOWN_MEMBER,
                    message=f"{member_id} is not a member of this group",
                    member_id=member_id,
                )
    return None


def create_payment(
    group_id: str,
    payer_id: str,
    recipient_id: str,
    amount: Money,
    date: dt.date | None = None,
    notes: str = "",
    members: Iterable[str] | None = None,
) -> Payment | PaymentError:
    """Validate and build a Payment."""
    error = validate_payment(payer_id, recipient_id, amount, members)
    if error is not None:
        return error
    return Payment(
        group_id=group_id,
        payer_id=payer_id,
        recipient_id=recipient_id,
        amount=amount,
        date=date or dt.date.today(),
        notes=notes,
    )


def _unknown(member_id: str, reference: str) -> IntegrityError:
    logger.warning("Balance netting found unknown member %s in %s", member_id, reference)
    return IntegrityError(
        kind=IntegrityErrorKind.UNKNOWN_MEMBER,
        message=f"{member_id} referenced by {reference} is not a group member",
        member_id=member_id,
        reference=reference,
    )


def _check_currency(amount: Money, currency: str, reference: str) -> None:
    if amount.currency != currency:
        raise CurrencyMismatchError(
            f"{reference} is in {amount.currency}, balances are in {currency}"
        )


def net_balances(
    expenses: Iterable[Expense],
    payments: Iterable[Payment],
    members: Sequence[str],
    currency: str,
) -> dict[str, Balance] | IntegrityError:
    """
    Net every member's position across all expenses and payments.

    Positive balance = member is owed money (paid more than their share)
    Negative balance = member owes money (paid less than their share)

    The payer of an expense is credited with the full total and every
    participant, the payer included, is debited their share. The payer of a
    payment is credited and the recipient debited.

    Args:
        expenses: Group expenses
        payments: Group payments
        members: Authoritative member ids; output follows this order
        currency: Currency every amount must be in

    Returns:
        Member id -> Balance, summing to exactly zero, or an IntegrityError
        for a reference to a non-member or an expense whose shares do not add
        up to its total

    Raises:
        CurrencyMismatchError: If any amount is in another currency
    """
    totals: dict[str, int] = {member_id: 0 for member_id in members}
    zero = Money.zero(currency)

    for expense in expenses:
        ref = f"expense {expense.id}"
        _check_currency(expense.total, zero.currency, ref)
        if expense.payer_id not in totals:
            return _unknown(expense.payer_id, ref)
        share_sum = sum_money((s.amount for s in expense.shares), zero.currency)
        if share_sum != expense.total:
            logger.warning("Shares of %s sum to %s, not %s", ref, share_sum, expense.total)
            return IntegrityError(
                kind=IntegrityErrorKind.SHARES_MISMATCH,
                message=f"Shares of {ref} sum to {share_sum.amount}, not {expense.total.amount}",
                reference=ref,
                expected=expense.total.amount,
                actual=share_sum.amount,
            )

        totals[expense.payer_id] += expense.total.minor
        for share in expense.shares:
            if share.member_id not in totals:
                return _unknown(share.member_id, ref)
            totals[share.member_id] -= share.amount.minor

    for payment in payments:
        ref = f"payment {payment.id}"
        _check_currency(payment.amount, zero.currency, ref)
        for member_id in (payment.payer_id, payment.recipient_id):
            if member_id not in totals:
                return _unknown(member_id, ref)
        totals[payment.payer_id] += payment.amount.minor  # payer's debt reduced
        totals[payment.recipient_id] -= payment.amount.minor  # recipient's credit reduced

    # Zero-sum holds by construction once every expense's shares match its total.
    assert sum(totals.values()) == 0, totals

    return {
        member_id: Balance(member_id=member_id, amount=Money(minor=minor, currency=zero.currency))
        for member_id, minor in totals.items()
    }


def group_balances(group: Group) -> dict[str, Balance] | IntegrityError:
    """Net balances for every member of an in-memory group."""
    return net_balances(group.expenses, group.payments, group.member_ids(), group.currency)


def _non_member(member_id: str) -> SplitError:
    return SplitError(
        kind=SplitErrorKind.UNKNOWN_MEMBER,
        message=f"{member_id} is not a member of this group",
        member_id=member_id,
    )


def add_expense(
    group: Group,
    description: str,
    payer_id: str,
    total: Money,
    policy: SplitPolicy,
    participants: Sequence[ParticipantLike] | None = None,
    date: dt.date | None = None,
    notes: str = "",
) -> tuple[Group, Expense] | SplitError:
    """
    Allocate an expense and add it to a group (immutable - returns new Group).

    Args:
        group: Original group
        description: What the expense was for
        payer_id: Who paid
        total: Total amount
        policy: How the total is split
        participants: Who shares it; defaults to every group member. Plain
            member ids pick up the group's display names.
        date: When it happened (default today)
        notes: Optional notes

    Returns:
        Tuple of (new Group, created Expense), or the SplitError. The payer
        and every participant must be group members.
    """
    if group.get_member(payer_id) is None:
        return _non_member(payer_id)
    if participants is None:
        participants = list(group.members)

    people: list[Participant] = []
    for p in participants:
        member = group.get_member(p if isinstance(p, str) else p.id)
        if member is None:
            return _non_member(p if isinstance(p, str) else p.id)
        people.append(member if isinstance(p, str) else p)

    expense = build_expense(
        group.id, description, payer_id, total, policy, people, date=date, notes=notes
    )
    if isinstance(expense, SplitError):
        return expense

    new_group = group.model_copy(deep=True)
    new_group.expenses.append(expense)
    return new_group, expense


def add_payment(
    group: Group,
    payer_id: str,
    recipient_id: str,
    amount: Money,
    date: dt.date | None = None,
    notes: str = "",
) -> tuple[Group, Payment] | PaymentError:
    """Record a payment between two members (immutable - returns new Group)."""
    payment = create_payment(
        group.id,
        payer_id,
        recipient_id,
        amount,
        date=date,
        notes=notes,
        members=group.member_ids(),
    )
    if isinstance(payment, PaymentError):
        return payment

    new_group = group.model_copy(deep=True)
    new_group.payments.append(payment)
    return new_group, payment


def accept_transfer(
    group: Group, transfer: Transfer, date: dt.date | None = None
) -> tuple[Group, Payment] | PaymentError:
    """Turn a confirmed settlement suggestion into a recorded payment."""
    return add_payment(
        group,
        transfer.from_id,
        transfer.to_id,
        transfer.amount,
        date=date,
        notes="Settlement",
    )
