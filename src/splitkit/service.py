"""Use cases: read a group snapshot from collaborators and run the engine on it."""

import datetime as dt

from .errors import IntegrityError, PaymentError
from .ledger import create_payment, net_balances
from .models import Balance, Payment, Transfer
from .ports import ExpenseSource, MembershipSource, PaymentSink, PaymentSource
from .settlement import plan


def compute_group_balances(
    group_id: str,
    expenses: ExpenseSource,
    payments: PaymentSource,
    membership: MembershipSource,
    currency: str,
) -> dict[str, Balance] | IntegrityError:
    """Net balances of a group from its persisted expenses and payments."""
    member_ids = [m.id for m in membership.members_of(group_id)]
    return net_balances(
        expenses.expenses_for(group_id),
        payments.payments_for(group_id),
        member_ids,
        currency,
    )


def suggest_settlement(
    group_id: str,
    expenses: ExpenseSource,
    payments: PaymentSource,
    membership: MembershipSource,
    currency: str,
) -> list[Transfer] | IntegrityError:
    """Transfers that would settle a group, or the integrity problem blocking them."""
    balances = compute_group_balances(group_id, expenses, payments, membership, currency)
    if isinstance(balances, IntegrityError):
        return balances
    return plan(balances)


def record_transfer(
    sink: PaymentSink,
    group_id: str,
    transfer: Transfer,
    date: dt.date | None = None,
) -> Payment | PaymentError:
    """Record a confirmed transfer as a new payment."""
    payment = create_payment(
        group_id,
        transfer.from_id,
        transfer.to_id,
        transfer.amount,
        date=date,
        notes="Settlement",
    )
    if isinstance(payment, PaymentError):
        return payment
    sink.record_payment(payment)
    return payment
