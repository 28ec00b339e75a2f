"""Tests for splitkit group state storage."""

from pathlib import Path

import pytest
from conftest import usd

from splitkit import ledger
from splitkit.models import EqualSplit, Group, Participant
from splitkit.ports import ExpenseSource, MembershipSource, PaymentSink, PaymentSource
from splitkit.store import GroupNotFoundError, GroupStore


class TestGroupStore:
    """Tests for GroupStore."""

    def test_init_creates_directory(self, tmp_path: Path) -> None:
        """Test that GroupStore creates its state directory."""
        state_dir = tmp_path / "splitkit"
        GroupStore(state_dir)
        assert state_dir.exists()

    def test_default_dir_from_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test SPLITKIT_HOME picks the state directory."""
        monkeypatch.setenv("SPLITKIT_HOME", str(tmp_path / "home"))
        store = GroupStore()
        assert store.state_dir == tmp_path / "home"

    def test_create_group(self, store: GroupStore, members: list[Participant]) -> None:
        """Test creating a group."""
        group = store.create_group("trip", "Beach Trip", "eur", members)

        assert group.name == "Beach Trip"
        assert group.currency == "EUR"
        assert group.member_ids() == ["a", "b", "c"]

    def test_name_defaults_to_id(self, store: GroupStore) -> None:
        """Test a group without a name is named after its id."""
        assert store.create_group("flat").name == "flat"

    def test_get_group(self, store: GroupStore) -> None:
        """Test getting a group by id."""
        store.create_group("trip")
        group = store.get_group("trip")
        assert group is not None
        assert group.id == "trip"

    def test_get_nonexistent_group(self, store: GroupStore) -> None:
        """Test getting a group that doesn't exist."""
        assert store.get_group("nope") is None

    def test_save_group_persists(self, temp_state_dir: Path, sample_group: Group) -> None:
        """Test that a saved group survives a new store instance."""
        result = ledger.add_expense(sample_group, "Dinner", "a", usd("30"), EqualSplit())
        assert isinstance(result, tuple)
        group, expense = result
        GroupStore(temp_state_dir).save_group(group)

        loaded = GroupStore(temp_state_dir).get_group("trip")
        assert loaded is not None
        assert loaded.expenses == [expense]
        assert loaded.members == sample_group.members

    def test_list_groups(self, store: GroupStore) -> None:
        """Test listing all groups."""
        store.create_group("one")
        store.create_group("two")
        assert store.list_groups() == ["one", "two"]

    def test_delete_group(self, store: GroupStore) -> None:
        """Test deleting a group."""
        store.create_group("trip")
        assert store.delete_group("trip")
        assert store.get_group("trip") is None

    def test_delete_nonexistent_group(self, store: GroupStore) -> None:
        """Test deleting a group that doesn't exist."""
        assert not store.delete_group("nope")

    def test_corrupt_file(self, tmp_path: Path) -> None:
        """Test handling of corrupt groups.json."""
        (tmp_path / "groups.json").write_text("not valid json {{{")
        store = GroupStore(tmp_path)
        assert store.list_groups() == []

    def test_invalid_group_data(self, tmp_path: Path) -> None:
        """Test handling of JSON that is not a valid group."""
        (tmp_path / "groups.json").write_text('{"trip": {"name": 5}}')
        store = GroupStore(tmp_path)
        assert store.list_groups() == []


class TestPorts:
    """Tests for the collaborator port implementations."""

    def test_satisfies_protocols(self, store: GroupStore) -> None:
        """Test the store can stand in for every collaborator."""
        expenses: ExpenseSource = store
        payments: PaymentSource = store
        sink: PaymentSink = store
        membership: MembershipSource = store
        assert expenses is payments is sink is membership

    def test_reads(self, store: GroupStore, group_with_expenses: Group) -> None:
        """Test expenses, payments and members come back from the snapshot."""
        store.save_group(group_with_expenses)
        assert [e.description for e in store.expenses_for("trip")] == ["Dinner", "Gas"]
        assert len(store.payments_for("trip")) == 1
        assert [m.id for m in store.members_of("trip")] == ["a", "b", "c"]

    def test_unknown_group_raises(self, store: GroupStore) -> None:
        """Test port reads for a missing group raise."""
        with pytest.raises(GroupNotFoundError):
            store.expenses_for("nope")

    def test_record_payment(
        self, temp_state_dir: Path, store: GroupStore, sample_group: Group
    ) -> None:
        """Test a recorded payment is persisted."""
        store.save_group(sample_group)
        before = store.get_group("trip")
        payment = ledger.create_payment("trip", "a", "b", usd("5"))
        store.record_payment(payment)

        assert before is not None
        assert before.payments == []
        assert GroupStore(temp_state_dir).payments_for("trip") == [payment]
