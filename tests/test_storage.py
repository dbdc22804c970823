"""
Tests for storage adapters and load-time migration.

Google Sheets is exercised against a MagicMock client; no network.
"""

import asyncio
import json
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from smartspend.models import Transaction, TransactionDraft
from smartspend.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsTransactionStorage,
    InMemoryTransactionStorage,
    LocalJsonTransactionStorage,
    NotFoundError,
    StorageError,
    normalize_record,
    normalize_records,
)
from smartspend.services.storage.google_sheets import (
    TRANSACTION_COLUMNS,
    row_to_record,
    transaction_to_row,
)
from smartspend.models.audit import AuditEventBuilder


def _draft(description="Tea", amount="5") -> TransactionDraft:
    return TransactionDraft(
        amount=Decimal(amount),
        type="expense",
        description=description,
        date=datetime(2024, 3, 1, 9, 0),
        account_id="cash",
    )


class TestMigration:
    """Tests for normalize_record / normalize_records."""

    def test_missing_account_defaults_to_salary(self):
        t = normalize_record({"id": "1", "amount": 10, "type": "income", "description": "x"})
        assert t.account_id == "salary"

    def test_configured_default_account(self):
        t = normalize_record({"id": "1", "amount": 10, "type": "income"}, default_account="cash")
        assert t.account_id == "cash"

    def test_target_dropped_for_non_transfer(self):
        t = normalize_record({
            "id": "1", "amount": 10, "type": "expense",
            "accountId": "cash", "targetAccountId": "savings",
        })
        assert t.target_account_id is None

    def test_empty_target_dropped(self):
        t = normalize_record({
            "id": "1", "amount": 10, "type": "transfer",
            "accountId": "cash", "targetAccountId": "",
        })
        assert t.target_account_id is None

    def test_missing_id_generated(self):
        t = normalize_record({"amount": "12.50", "type": "expense"})
        assert t.id
        assert t.amount == Decimal("12.50")

    def test_category_canonicalized(self):
        t = normalize_record({"id": "1", "amount": 1, "type": "expense", "category": " bazar & groceries "})
        assert t.category == "Bazar & Groceries"

    def test_type_is_case_insensitive(self):
        assert normalize_record({"id": "1", "amount": 1, "type": " Income "}).type.value == "income"

    @pytest.mark.parametrize("record", [
        {"id": "1", "amount": "abc", "type": "expense"},
        {"id": "1", "amount": -5, "type": "expense"},
        {"id": "1", "amount": "NaN", "type": "expense"},
        {"id": "1", "type": "expense"},
        {"id": "1", "amount": 5, "type": "refund"},
        {"id": "1", "amount": 5},
    ])
    def test_uninterpretable_records_dropped(self, record):
        assert normalize_record(record) is None

    def test_batch_counts(self):
        result = normalize_records([
            {"id": "1", "amount": 1, "type": "income", "accountId": "cash", "category": "Other"},
            {"id": "2", "amount": 1, "type": "income", "category": "Other"},
            {"id": "3", "amount": "x", "type": "income"},
            "garbage",
        ])
        assert [t.id for t in result.transactions] == ["1", "2"]
        assert result.repaired == 1
        assert result.dropped == 2
        assert result.unreadable == [{"id": "3", "amount": "x", "type": "income"}, "garbage"]
        assert result.changed

    @pytest.mark.parametrize("record", [
        {"id": "1", "amount": 3, "type": "expense", "category": " food & dining "},
        {"id": "2", "amount": "x", "type": "expense"},
        {"id": "3", "amount": 3, "type": "transfer", "targetAccountId": ""},
        "garbage",
    ])
    def test_single_and_batch_agree(self, record):
        batch = normalize_records([record])
        single = normalize_record(record)
        assert batch.transactions == ([single] if single else [])

    def test_long_description_is_kept(self):
        t = normalize_record({"id": "1", "amount": 5, "type": "expense", "description": "y" * 700})
        assert t is not None
        assert len(t.description) == 700

    def test_clean_batch_is_unchanged(self):
        t = Transaction.from_draft(_draft())
        result = normalize_records([t.to_record()])
        assert result.transactions == [t]
        assert not result.changed


class TestLocalJsonStorage:
    """Tests for the local file store."""

    def test_missing_file_loads_empty(self, tmp_path):
        storage = LocalJsonTransactionStorage(tmp_path / "ledger.json")
        assert asyncio.run(storage.load()) == []

    def test_save_and_load(self, tmp_path):
        storage = LocalJsonTransactionStorage(tmp_path / "data" / "ledger.json")
        t = Transaction.from_draft(_draft())
        asyncio.run(storage.save([t]))
        assert asyncio.run(storage.load()) == [t]

    def test_file_holds_camel_case_records_without_nulls(self, tmp_path):
        path = tmp_path / "ledger.json"
        storage = LocalJsonTransactionStorage(path)
        asyncio.run(storage.add(_draft()))
        records = json.loads(path.read_text(encoding="utf-8"))
        assert records[0]["accountId"] == "cash"
        assert "targetAccountId" not in records[0]
        assert None not in records[0].values()

    def test_add_prepends(self, tmp_path):
        storage = LocalJsonTransactionStorage(tmp_path / "ledger.json")
        asyncio.run(storage.add(_draft("first")))
        asyncio.run(storage.add(_draft("second")))
        assert [t.description for t in asyncio.run(storage.load())] == ["second", "first"]

    def test_update_and_delete(self, tmp_path):
        storage = LocalJsonTransactionStorage(tmp_path / "ledger.json")
        t = asyncio.run(storage.add(_draft()))
        asyncio.run(storage.update(t.model_copy(update={"description": "Coffee"})))
        assert asyncio.run(storage.load())[0].description == "Coffee"
        assert asyncio.run(storage.delete(t.id)) is True
        assert asyncio.run(storage.delete(t.id)) is False
        assert asyncio.run(storage.load()) == []

    def test_update_unknown_raises(self, tmp_path):
        storage = LocalJsonTransactionStorage(tmp_path / "ledger.json")
        with pytest.raises(NotFoundError):
            asyncio.run(storage.update(Transaction.from_draft(_draft())))

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            asyncio.run(LocalJsonTransactionStorage(path).load())

    def test_legacy_records_are_migrated(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps([
            {"id": "a", "amount": 100, "type": "income", "description": "Old", "date": "2023-01-01"},
        ]), encoding="utf-8")
        storage = LocalJsonTransactionStorage(path)
        loaded = asyncio.run(storage.load())
        assert loaded[0].account_id == "salary"
        assert storage.last_migration.repaired == 1

    def test_save_keeps_what_load_could_not_read(self, tmp_path):
        path = tmp_path / "ledger.json"
        bad = {"id": "bad", "amount": "twelve", "type": "expense"}
        path.write_text(json.dumps([
            {"id": "long", "amount": 5, "type": "expense", "accountId": "cash",
             "category": "Other", "description": "z" * 600},
            {"id": "slash", "amount": 7, "type": "expense", "accountId": "cash",
             "category": "Other", "description": "Tea", "date": "2024/03/01 10:00"},
            bad,
        ]), encoding="utf-8")
        storage = LocalJsonTransactionStorage(path)
        loaded = asyncio.run(storage.load())
        asyncio.run(storage.save(loaded + [Transaction.from_draft(_draft("ok"), "ok")]))

        records = json.loads(path.read_text(encoding="utf-8"))
        assert [r["id"] for r in records] == ["long", "slash", "ok", "bad"]
        assert len(records[0]["description"]) == 600
        assert records[1]["date"] == "2024/03/01 10:00"
        assert records[3] == bad


class TestInMemoryStorage:

    def test_round_trip(self):
        storage = InMemoryTransactionStorage()
        t = asyncio.run(storage.add(_draft()))
        assert asyncio.run(storage.load()) == [t]
        assert storage.records[0]["id"] == t.id

    def test_update_unknown_raises(self):
        with pytest.raises(NotFoundError):
            asyncio.run(InMemoryTransactionStorage().update(Transaction.from_draft(_draft())))


class TestGoogleSheetsStorage:
    """Tests for the Sheets adapter against a mocked client."""

    def _storage(self, rows):
        sheet = MagicMock()
        sheet.get_all_values.return_value = [TRANSACTION_COLUMNS] + rows
        sheet.row_count = 1000
        client = MagicMock()
        client.get_transactions_sheet.return_value = sheet
        return GoogleSheetsTransactionStorage(client), sheet

    def test_row_conversion(self):
        t = Transaction.from_draft(_draft(), "abc")
        row = transaction_to_row(t)
        assert row[0] == "abc"
        assert row[TRANSACTION_COLUMNS.index("targetAccountId")] == ""
        assert "targetAccountId" not in row_to_record(row)

    def test_load_migrates_rows(self):
        storage, _ = self._storage([
            ["1", "100", "income", "salary", "Pay", "2024-03-01T00:00:00", "", ""],
            ["", "", "", "", "", "", "", ""],
            ["2", "oops", "expense", "", "", "", "cash", ""],
        ])
        loaded = asyncio.run(storage.load())
        assert len(loaded) == 1
        assert loaded[0].category == "Salary"
        assert loaded[0].account_id == "salary"

    def test_save_is_one_write_then_trim(self):
        """The sheet is never cleared; a failed write leaves the old copy readable."""
        storage, sheet = self._storage([])
        t = Transaction.from_draft(_draft())
        asyncio.run(storage.save([t]))
        sheet.update.assert_called_once_with(
            range_name="A1",
            values=[TRANSACTION_COLUMNS, transaction_to_row(t)],
            value_input_option="RAW",
        )
        sheet.resize.assert_called_once_with(rows=2)
        sheet.clear.assert_not_called()
        sheet.append_rows.assert_not_called()

    def test_failed_write_does_not_trim(self):
        storage, sheet = self._storage([])
        sheet.update.side_effect = RuntimeError("quota")
        with pytest.raises(StorageError):
            asyncio.run(storage.save([Transaction.from_draft(_draft())]))
        sheet.resize.assert_not_called()
        sheet.clear.assert_not_called()

    def test_add_inserts_under_header(self):
        storage, sheet = self._storage([])
        t = asyncio.run(storage.add(_draft()))
        sheet.insert_row.assert_called_once()
        assert sheet.insert_row.call_args.kwargs["index"] == 2
        assert sheet.insert_row.call_args.args[0][0] == t.id

    def test_delete(self):
        storage, sheet = self._storage([["x", "1", "expense"]])
        assert asyncio.run(storage.delete("x")) is True
        sheet.delete_rows.assert_called_once_with(2)
        assert asyncio.run(storage.delete("y")) is False

    def test_update_unknown_raises(self):
        storage, _ = self._storage([])
        with pytest.raises(NotFoundError):
            asyncio.run(storage.update(Transaction.from_draft(_draft())))

    def test_audit_append_never_raises(self):
        client = MagicMock()
        client.get_audit_sheet.side_effect = RuntimeError("offline")
        storage = GoogleSheetsAuditStorage(client)
        event = AuditEventBuilder.ledger_saved(1, "local")
        assert asyncio.run(storage.append_event(event)) is False

    def test_audit_recent_events(self):
        older = AuditEventBuilder.ledger_saved(1, "local").model_copy(
            update={"timestamp": datetime(2024, 3, 1, tzinfo=timezone.utc)}
        )
        newer = AuditEventBuilder.transaction_deleted("tx-1").model_copy(
            update={"timestamp": datetime(2024, 3, 2, tzinfo=timezone.utc)}
        )
        sheet = MagicMock()
        sheet.get_all_values.return_value = [["header"], older.to_sheets_row(), newer.to_sheets_row()]
        client = MagicMock()
        client.get_audit_sheet.return_value = sheet
        events = asyncio.run(GoogleSheetsAuditStorage(client).get_recent_events(limit=1))
        assert [e.event_id for e in events] == [newer.event_id]
