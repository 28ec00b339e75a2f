"""Group state persistence - a JSON file store implementing the collaborator ports."""

import json
import logging
from pathlib import Path

from .config import get_state_dir
from .models import Expense, Group, Participant, Payment

logger = logging.getLogger(__name__)


class GroupNotFoundError(KeyError):
    """No group with the requested id."""

    pass


class GroupStore:
    """
    Stores groups with their members, expenses and payments.

    State is persisted to <state_dir>/groups.json (default ~/.splitkit).
    Implements ExpenseSource, PaymentSource, PaymentSink and MembershipSource.
    """

    def __init__(self, state_dir: str | Path | None = None):
        """
        Initialize GroupStore.

        Args:
            state_dir: Directory for state files (default: SPLITKIT_HOME or ~/.splitkit)
        """
        if state_dir is None:
            state_dir = get_state_dir()
        self.state_dir = Path(state_dir)
        self.state_dir.mkdir(parents=True, exist_ok=True)

        self.groups_file = self.state_dir / "groups.json"
        self._groups: dict[str, Group] = {}

        self._load()

    def _load(self) -> None:
        """Load state from disk."""
        if not self.groups_file.exists():
            return
        try:
            with open(self.groups_file, encoding="utf-8") as f:
                data = json.load(f)
            self._groups = {gid: Group.model_validate(group) for gid, group in data.items()}
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", self.groups_file, e)
            self._groups = {}

    def _save(self) -> None:
        """Save state to disk."""
        with open(self.groups_file, "w", encoding="utf-8") as f:
            json.dump(
                {gid: group.model_dump(mode="json") for gid, group in self._groups.items()},
                f,
                indent=2,
                ensure_ascii=False,
            )

    def _require(self, group_id: str) -> Group:
        group = self._groups.get(group_id)
        if group is None:
            raise GroupNotFoundError(group_id)
        return group

    def get_group(self, group_id: str) -> Group | None:
        """Get a group by id."""
        return self._groups.get(group_id)

    def create_group(
        self,
        group_id: str,
        name: str | None = None,
        currency: str = "USD",
        members: list[Participant] | None = None,
    ) -> Group:
        """Create a new group, replacing any group with the same id."""
        group = Group(id=group_id, name=name or group_id, currency=currency, members=members or [])
        self._groups[group_id] = group
        self._save()
        logger.info("Created group %s (%s)", group_id, group.currency)
        return group

    def save_group(self, group: Group) -> None:
        """Save/update a group."""
        self._groups[group.id] = group
        self._save()

    def list_groups(self) -> list[str]:
        """List all group ids."""
        return list(self._groups.keys())

    def delete_group(self, group_id: str) -> bool:
        """Delete a group. Returns True if deleted."""
        if group_id in self._groups:
            del self._groups[group_id]
            self._save()
            return True
        return False

    # === Collaborator ports ===

    def expenses_for(self, group_id: str) -> list[Expense]:
        return list(self._require(group_id).expenses)

    def payments_for(self, group_id: str) -> list[Payment]:
        return list(self._require(group_id).payments)

    def members_of(self, group_id: str) -> list[Participant]:
        return list(self._require(group_id).members)

    def record_payment(self, payment: Payment) -> None:
        group = self._require(payment.group_id).model_copy(deep=True)
        group.payments.append(payment)
        self.save_group(group)
        logger.info(
            "Recorded payment %s -> %s: %s", payment.payer_id, payment.recipient_id, payment.amount
        )
