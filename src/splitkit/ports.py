"""Interfaces of the collaborators the engine reads from and writes to."""

from typing import Protocol

from .models import Expense, Participant, Payment


class ExpenseSource(Protocol):
    """Read access to a group's expenses."""

    def expenses_for(self, group_id: str) -> list[Expense]:
        """Return the live (not deleted) expenses of a group."""


class PaymentSource(Protocol):
    """Read access to a group's payments."""

    def payments_for(self, group_id: str) -> list[Payment]:
        """Return the live (not deleted) payments of a group."""


class PaymentSink(Protocol):
    """Write path for new payments, including accepted settlement transfers."""

    def record_payment(self, payment: Payment) -> None:
        """Persist a payment."""


class MembershipSource(Protocol):
    """The authoritative member list of a group."""

    def members_of(self, group_id: str) -> list[Participant]:
        """Return the group's members in display order."""


__all__ = ["ExpenseSource", "MembershipSource", "PaymentSink", "PaymentSource"]
