"""
Tests for the storage backends. Flat files are written under tmp_path.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from xpense.models.ledger import Account, Category, Expenditure, Receipt
from xpense.orchestrator import create_ledger_system
from xpense.services.storage import (
    EntityKind,
    FlatFileStorage,
    InMemoryStorage,
    PersistenceError,
    StorageError,
    StorageNotFoundError,
)


@pytest.fixture
def flat_storage(tmp_path):
    return FlatFileStorage(data_dir=tmp_path, retry_attempts=1)


def write_lines(storage, kind, *lines):
    path = storage.path_for(kind)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


class TestFlatFileStorage:
    """Tests for the pipe-delimited flat-file backend."""

    def test_missing_file_loads_empty(self, flat_storage):
        """Test a kind that was never written loads as an empty list."""
        assert flat_storage.load(EntityKind.EXPENDITURES) == []

    def test_expenditure_round_trip(self, flat_storage):
        """Test expenditures survive a save and load with every field."""
        stamp = datetime(2024, 3, 1, 12, 30, 15)
        expenditures = [
            Expenditure(id="EXP0001", description="Lunch", amount=Decimal("12.50"),
                        category=Category(name="Food"), timestamp=stamp, phase="site-b",
                        account_id="A001", receipt_info="R1"),
            Expenditure(id="EXP0002", description="Bus", amount=Decimal("2"),
                        category=Category(name="Travel"), timestamp=stamp, account_id="A001"),
        ]
        assert flat_storage.save(EntityKind.EXPENDITURES, expenditures) is True

        loaded = flat_storage.load(EntityKind.EXPENDITURES)

        assert [e.id for e in loaded] == ["EXP0001", "EXP0002"]
        first, second = loaded
        assert first.amount == Decimal("12.50")
        assert first.timestamp == stamp
        assert first.phase == "site-b"
        assert first.category_name == "Food"
        assert first.receipt_info == "R1"
        assert second.receipt_info is None
        assert second.phase == "active"

    def test_written_expenditure_layout(self, flat_storage):
        """Test the on-disk field order of an expenditure line."""
        flat_storage.save(EntityKind.EXPENDITURES, [
            Expenditure(id="EXP0001", description="Lunch", amount=Decimal("12.50"),
                        category=Category(name="Food"), timestamp=datetime(2024, 3, 1, 12, 0),
                        account_id="A001"),
        ])
        line = flat_storage.path_for(EntityKind.EXPENDITURES).read_text(encoding="utf-8").strip()
        assert line == "EXP0001|Lunch|12.50|2024-03-01T12:00:00|active|Food|A001|"

    def test_older_expenditure_layouts(self, flat_storage):
        """Test 7-field and 6-field expenditure lines are still read."""
        write_lines(
            flat_storage, EntityKind.EXPENDITURES,
            "EXP0001|Lunch|10.00|2024-03-01T12:00:00|Food|A001|R9",
            "EXP0002|Taxi|7.25|2024-03-02T08:15:00|Travel|A002",
        )
        first, second = flat_storage.load(EntityKind.EXPENDITURES)
        assert (first.category_name, first.account_id, first.receipt_info) == ("Food", "A001", "R9")
        assert (second.category_name, second.account_id, second.receipt_info) == ("Travel", "A002", None)
        assert first.phase == second.phase == "active"

    def test_malformed_lines_skipped(self, flat_storage):
        """Test short lines, bad amounts and bad timestamps are skipped."""
        write_lines(
            flat_storage, EntityKind.EXPENDITURES,
            "EXP0001|Lunch|10.00",
            "EXP0002|Lunch|ten|2024-03-01T12:00:00|Food|A001",
            "EXP0003|Lunch|10.00|yesterday|Food|A001",
            "",
            "EXP0004|Lunch|10.00|2024-03-01T12:00:00|active|Food|A001|",
        )
        assert [e.id for e in flat_storage.load(EntityKind.EXPENDITURES)] == ["EXP0004"]

    def test_accounts_skip_comments(self, flat_storage):
        """Test comment and blank lines in the account file are ignored."""
        write_lines(
            flat_storage, EntityKind.ACCOUNTS,
            "# id|name|balance",
            "A001|Checking|100.00",
            "",
            "A002|Savings|2500",
        )
        accounts = flat_storage.load(EntityKind.ACCOUNTS)
        assert [(a.id, a.balance) for a in accounts] == [
            ("A001", Decimal("100.00")),
            ("A002", Decimal("2500")),
        ]

    def test_category_and_receipt_round_trip(self, flat_storage):
        """Test categories and receipts survive a save and load."""
        stamp = datetime(2024, 1, 5, 10, 0)
        flat_storage.save(EntityKind.CATEGORIES, [Category(name="Food", description="Meals", color="#00FF00")])
        flat_storage.save(EntityKind.RECEIPTS, [
            Receipt(id="R1", expense_code="EXP0001", file_path="scans/r1.png", timestamp=stamp),
        ])

        category, = flat_storage.load(EntityKind.CATEGORIES)
        receipt, = flat_storage.load(EntityKind.RECEIPTS)

        assert (category.name, category.description, category.color) == ("Food", "Meals", "#00FF00")
        assert (receipt.id, receipt.expense_code, receipt.file_path, receipt.timestamp) == (
            "R1", "EXP0001", "scans/r1.png", stamp,
        )

    def test_save_replaces_file(self, flat_storage):
        """Test each save rewrites the whole list."""
        flat_storage.save(EntityKind.ACCOUNTS, [Account(id="A1"), Account(id="A2")])
        flat_storage.save(EntityKind.ACCOUNTS, [Account(id="A2")])
        assert [a.id for a in flat_storage.load(EntityKind.ACCOUNTS)] == ["A2"]

    def test_unusable_data_dir(self, tmp_path):
        """Test a data directory that is actually a file is reported."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        storage = FlatFileStorage(data_dir=blocker, retry_attempts=1)
        with pytest.raises(StorageNotFoundError):
            storage.save(EntityKind.ACCOUNTS, [Account(id="A1")])

    def test_undecodable_file_raises_storage_error(self, flat_storage):
        """Test a file that is not valid UTF-8 is reported as a storage failure."""
        path = flat_storage.path_for(EntityKind.ACCOUNTS)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"A001|Ch\xff|100\n")
        with pytest.raises(StorageError):
            flat_storage.load(EntityKind.ACCOUNTS)


class TestInMemoryStorage:
    """Tests for the in-memory backend."""

    def test_copies_on_save_and_load(self):
        """Test stored records are isolated from later mutation."""
        storage = InMemoryStorage()
        account = Account(id="A1", balance=Decimal("5"))
        storage.save(EntityKind.ACCOUNTS, [account])
        account.balance = Decimal("0")
        assert storage.load(EntityKind.ACCOUNTS)[0].balance == Decimal("5")

    def test_failing_writes(self):
        """Test failing writes raise PersistenceError and keep the old data."""
        storage = InMemoryStorage({EntityKind.ACCOUNTS: [Account(id="A1")]})
        storage.fail_writes = True
        with pytest.raises(PersistenceError):
            storage.save(EntityKind.ACCOUNTS, [])
        assert len(storage.stored(EntityKind.ACCOUNTS)) == 1


class TestSystemPersistence:
    """Tests for loading a ledger written by an earlier system."""

    def test_restart_restores_ledger(self, tmp_path):
        """Test a second system over the same directory sees the first one's data."""
        first = create_ledger_system(storage=FlatFileStorage(data_dir=tmp_path))
        first.add_account(Account(id="A001", name="Checking", balance=Decimal("500.00")))
        first.add_category(Category(name="Food", description="Meals", color="green"))
        first.add_receipt(Receipt(id="R1", expense_code="EXP0001", file_path="r1.png"))
        committed = first.add_expenditure("A001", "Food", Decimal("42.10"), "Dinner", receipt_info="R1")
        assert committed.persisted

        second = create_ledger_system(storage=FlatFileStorage(data_dir=tmp_path))

        account = second.ledger.get_account("A001")
        assert account.balance == Decimal("457.90")
        assert [e.id for e in account.get_expenditures()] == [committed.expenditure_id]
        assert second.categories.validate_category("food")
        assert len(second.receipts.get_all_receipts()) == 1
        assert second.add_expenditure("A001", "Food", Decimal("1"), "Gum").expenditure_id != committed.expenditure_id

    def test_undecodable_file_becomes_load_alert(self, tmp_path):
        """Test loading over a corrupt file alerts and continues with the other kinds."""
        (tmp_path / "accounts.txt").write_bytes(b"A001|Ch\xff|100\n")
        (tmp_path / "categories.txt").write_text("Food|Meals|green\n", encoding="utf-8")
        system = create_ledger_system(storage=FlatFileStorage(data_dir=tmp_path), load=False)

        counts = system.load_all()

        assert counts["accounts"] == 0
        assert counts["categories"] == 1
        failures = [m for m in system.alerts.display_all() if "Failed to load accounts" in m]
        assert len(failures) == 1
