"""Shared fixtures for SmartSpend tests."""

from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from smartspend.models import Transaction, TransactionType
from smartspend.models import transaction as transaction_module

DHAKA = ZoneInfo("Asia/Dhaka")


@pytest.fixture(autouse=True)
def local_zone(monkeypatch):
    """Pin the ledger calendar to Dhaka whatever TIMEZONE the host sets."""
    monkeypatch.setattr(transaction_module, "local_timezone", lambda: DHAKA)
    return DHAKA


@pytest.fixture
def make_tx():
    """Factory for transactions with sensible defaults."""

    def _make(
        type_="expense",
        amount="10",
        account="salary",
        target=None,
        date=datetime(2024, 3, 15, 12, 0),
        description="item",
        category="Other",
        **extra,
    ) -> Transaction:
        return Transaction(
            type=TransactionType(type_),
            amount=Decimal(str(amount)),
            account_id=account,
            target_account_id=target,
            date=date,
            description=description,
            category=category,
            **extra,
        )

    return _make


@pytest.fixture
def scenario(make_tx):
    """Salary in, a cash withdrawal, one Bazar expense."""
    return [
        make_tx("income", 1000, "salary", description="Monthly Salary", category="Salary"),
        make_tx("transfer", 200, "salary", target="cash", description="", category="Transfer"),
        make_tx("expense", 50, "cash", description="Vegetables", category="Bazar & Groceries"),
    ]
