"""Tests for the snapshot, report roll-ups, lending and entry helpers."""

import pytest
from datetime import datetime
from decimal import Decimal

from smartspend.ledger import LedgerSnapshot
from smartspend.ledger.entries import (
    received_money_draft,
    salary_draft,
    transfer_draft,
    withdrawal_draft,
)
from smartspend.ledger.lending import (
    lend_draft,
    parse_lending,
    people_balances,
    person_history,
    recovery_draft,
    search_people,
)
from smartspend.ledger.reports import (
    bazar_monthly_report,
    bazar_transactions,
    bazar_trips,
    daily_flow,
    expenses_by_category,
    month_end,
    month_end_balances,
    monthly_flow,
    top_expense_items,
)
from smartspend.models import LendingKind, Period, Transaction, TransactionType


MARCH = datetime(2024, 3, 20)


class TestLedgerSnapshot:
    """Tests for LedgerSnapshot."""

    def test_with_added_prepends_and_leaves_original(self, scenario, make_tx):
        snapshot = LedgerSnapshot(scenario)
        new = make_tx(description="new")
        updated = snapshot.with_added(new)
        assert updated.transactions[0] is new
        assert len(updated) == 4
        assert len(snapshot) == 3

    def test_with_added_all_matches_adding_one_by_one(self, scenario, make_tx):
        items = [make_tx(description=name) for name in ("rice", "oil", "fish")]
        snapshot = LedgerSnapshot(scenario)
        one_by_one = snapshot
        for item in items:
            one_by_one = one_by_one.with_added(item)
        assert snapshot.with_added_all(items).transactions == one_by_one.transactions
        assert [t.description for t in snapshot.with_added_all(items)][:3] == ["fish", "oil", "rice"]

    def test_with_updated_replaces_by_id(self, scenario):
        snapshot = LedgerSnapshot(scenario)
        original = scenario[2]
        changed = original.model_copy(update={"amount": Decimal("70")})
        updated = snapshot.with_updated(changed)
        assert updated.get(original.id).amount == Decimal("70")
        assert updated.balances.cash == Decimal("130")
        assert snapshot.balances.cash == Decimal("150")

    def test_with_updated_unknown_id_raises(self, scenario, make_tx):
        with pytest.raises(KeyError):
            LedgerSnapshot(scenario).with_updated(make_tx())

    def test_with_deleted(self, scenario):
        snapshot = LedgerSnapshot(scenario).with_deleted(scenario[1].id)
        assert len(snapshot) == 2
        assert snapshot.balances.salary == Decimal("1000")

    def test_with_deleted_unknown_id_is_no_op(self, scenario):
        assert len(LedgerSnapshot(scenario).with_deleted("missing")) == 3

    def test_summary_scoped_to_cash(self, scenario):
        summary = LedgerSnapshot(scenario).summary(Period.MONTH, "cash", MARCH)
        assert summary.total_income == Decimal("200")
        assert summary.total_expenses == Decimal("50")
        assert summary.balance == Decimal("150")
        assert summary.salary_account_balance == Decimal("800")

    def test_summary_outside_period_keeps_lifetime_balances(self, scenario):
        summary = LedgerSnapshot(scenario).summary(Period.MONTH, "all", datetime(2024, 4, 1))
        assert summary.total_income == Decimal("0")
        assert summary.savings_rate == 0.0
        assert summary.cash_balance == Decimal("150")

    def test_filtered_without_period(self, scenario):
        assert LedgerSnapshot(scenario).filtered(account_filter="savings") == []


class TestReports:
    """Tests for report roll-ups."""

    def test_expenses_by_category(self, make_tx):
        ledger = [
            make_tx(amount=30, category="Food & Dining"),
            make_tx(amount=50, category="Shopping"),
            make_tx(amount=25, category="Food & Dining"),
            make_tx("income", 999, category="Salary"),
        ]
        assert expenses_by_category(ledger) == [
            ("Food & Dining", Decimal("55")),
            ("Shopping", Decimal("50")),
        ]

    def test_top_expense_items_ignore_income(self, make_tx):
        ledger = [make_tx("income", 500, description="Salary"), make_tx(amount=5, description="Tea")]
        assert [item.description for item in top_expense_items(ledger)] == ["tea"]

    def test_daily_flow_excludes_transfers(self, scenario, make_tx):
        ledger = scenario + [make_tx(amount=10, date=datetime(2024, 3, 2))]
        rows = daily_flow(ledger)
        assert [row.label for row in rows] == ["2", "15"]
        assert rows[1].income == Decimal("1000")
        assert rows[1].expense == Decimal("50")

    def test_monthly_flow_is_zero_filled(self, scenario):
        rows = monthly_flow(scenario)
        assert len(rows) == 12
        assert rows[0].label == "Jan"
        assert rows[2].income == Decimal("1000")
        assert rows[5].income == rows[5].expense == Decimal("0")

    def test_bazar_trips_by_minute(self, make_tx):
        ledger = [
            make_tx(amount=60, category="Bazar & Groceries", date=datetime(2024, 3, 1, 10, 0, 5)),
            make_tx(amount=40, category="Bazar & Groceries", date=datetime(2024, 3, 1, 10, 0, 50)),
            make_tx(amount=15, category="Bazar & Groceries", date=datetime(2024, 3, 5, 18, 30)),
        ]
        trips = bazar_trips(ledger)
        assert [trip.key for trip in trips] == ["2024-03-05T18:30", "2024-03-01T10:00"]
        assert trips[1].total == Decimal("100")
        assert len(trips[1].items) == 2
        assert trips[1].started_at == datetime(2024, 3, 1, 10, 0)

    def test_bazar_transactions_in_reference_month(self, make_tx):
        ledger = [
            make_tx(category="Bazar & Groceries", date=datetime(2024, 3, 2)),
            make_tx(category="Bazar & Groceries", date=datetime(2024, 2, 28)),
            make_tx(category="Shopping", date=datetime(2024, 3, 2)),
        ]
        assert len(bazar_transactions(ledger, MARCH)) == 1

    def test_bazar_monthly_report(self, make_tx):
        ledger = [
            make_tx(amount=10, category="Bazar & Groceries", date=datetime(2024, 3, 2, 9, 0)),
            make_tx(amount=20, category="Bazar & Groceries", date=datetime(2024, 3, 9, 9, 0)),
            make_tx(amount=5, category="Bazar & Groceries", date=datetime(2024, 1, 9, 9, 0)),
            make_tx(amount=99, category="Shopping", date=datetime(2024, 3, 9, 9, 0)),
        ]
        report = bazar_monthly_report(ledger)
        assert list(report) == ["2024-03", "2024-01"]
        total, trips = report["2024-03"]
        assert total == Decimal("30")
        assert len(trips) == 2

    def test_month_end(self):
        assert month_end("2024-02") == datetime(2024, 2, 29, 23, 59, 59, 999999)

    def test_month_end_balances(self, make_tx):
        ledger = [
            make_tx("income", 100, "cash", date=datetime(2024, 2, 29, 23, 59)),
            make_tx("expense", 30, "cash", date=datetime(2024, 3, 1, 0, 0)),
        ]
        assert month_end_balances(ledger, "2024-02").cash == Decimal("100")
        assert month_end_balances(ledger, "2024-03").cash == Decimal("70")


class TestLending:
    """Tests for the lending tracker."""

    def _ledger(self, make_tx):
        return [
            make_tx(amount=500, category="Lending", description="Lent to Rahim",
                    date=datetime(2024, 3, 1)),
            make_tx("income", 200, category="Lending", description="returned by Rahim",
                    date=datetime(2024, 3, 10)),
            make_tx(amount=100, category="Lending", description="Lent to Karim",
                    date=datetime(2024, 2, 1)),
            make_tx(amount=100, category="Shopping", description="Lent to nobody"),
        ]

    def test_parse_lending(self, make_tx):
        ledger = self._ledger(make_tx)
        lent = parse_lending(ledger[0])
        assert lent.name == "Rahim"
        assert lent.kind == LendingKind.LEND
        assert parse_lending(ledger[1]).kind == LendingKind.RECOVER
        assert parse_lending(ledger[3]) is None

    def test_people_balances(self, make_tx):
        people = people_balances(self._ledger(make_tx))
        assert [p.name for p in people] == ["Rahim", "Karim"]
        assert people[0].balance == Decimal("300")
        assert people[0].last_activity == datetime(2024, 3, 10)
        assert people[1].balance == Decimal("100")

    def test_search_people(self, make_tx):
        people = people_balances(self._ledger(make_tx))
        assert [p.name for p in search_people(people, "RAH")] == ["Rahim"]

    def test_person_history_newest_first(self, make_tx):
        history = person_history(self._ledger(make_tx), "Rahim")
        assert [t.amount for t in history] == [Decimal("200"), Decimal("500")]

    def test_drafts_round_trip_through_parser(self):
        lent = Transaction.from_draft(lend_draft(" Rahim ", Decimal("50")))
        back = Transaction.from_draft(recovery_draft("Rahim", Decimal("20"), "salary"))
        assert lent.description == "Lent to Rahim"
        assert lent.type == TransactionType.EXPENSE
        assert lent.account_id == "cash"
        assert back.account_id == "salary"
        assert people_balances([lent, back])[0].balance == Decimal("30")


class TestEntryHelpers:
    """Tests for the quick-entry draft builders."""

    def test_salary_draft(self):
        draft = salary_draft(Decimal("50000"), MARCH)
        assert draft.type == TransactionType.INCOME
        assert draft.category == "Salary"
        assert draft.description == "Monthly Salary"
        assert draft.account_id == "salary"
        assert draft.date == MARCH

    def test_received_money_default_description(self):
        draft = received_money_draft(Decimal("300"))
        assert draft.description == "Received Money"
        assert draft.category == "Other"
        assert draft.account_id == "cash"
        assert draft.date is not None

    def test_withdrawal_is_transfer_to_cash(self):
        draft = withdrawal_draft(Decimal("2000"), "savings")
        assert draft.is_transfer
        assert draft.account_id == "savings"
        assert draft.target_account_id == "cash"
        assert draft.category == "Transfer"
        assert draft.description == "Cash Withdrawal"

    def test_transfer_draft(self):
        draft = transfer_draft(Decimal("10"), "salary", "savings", " Monthly savings ")
        assert draft.target_account_id == "savings"
        assert draft.description == "Monthly savings"
