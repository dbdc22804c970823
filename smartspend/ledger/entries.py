"""Draft builders for the quick-entry forms (salary, received money, withdrawals)."""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from smartspend.models.transaction import (
    AccountId,
    Category,
    TransactionDraft,
    TransactionType,
    local_now,
)


def salary_draft(amount: Decimal, when: Optional[datetime] = None) -> TransactionDraft:
    """Monthly salary always lands in the salary account."""
    return TransactionDraft(
        amount=amount,
        type=TransactionType.INCOME,
        category=Category.SALARY,
        description="Monthly Salary",
        date=when or local_now(),
        account_id=AccountId.SALARY,
    )


def received_money_draft(
    amount: Decimal,
    account: Union[AccountId, str] = AccountId.CASH,
    description: str = "",
    when: Optional[datetime] = None,
) -> TransactionDraft:
    return TransactionDraft(
        amount=amount,
        type=TransactionType.INCOME,
        category=Category.OTHER,
        description=description.strip() or "Received Money",
        date=when or local_now(),
        account_id=account,
    )


def transfer_draft(
    amount: Decimal,
    source: Union[AccountId, str],
    target: Union[AccountId, str],
    description: str = "",
    when: Optional[datetime] = None,
) -> TransactionDraft:
    return TransactionDraft(
        amount=amount,
        type=TransactionType.TRANSFER,
        category=Category.TRANSFER,
        description=description.strip(),
        date=when or local_now(),
        account_id=source,
        target_account_id=target,
    )


def withdrawal_draft(
    amount: Decimal,
    source: Union[AccountId, str] = AccountId.SALARY,
    description: str = "",
    when: Optional[datetime] = None,
) -> TransactionDraft:
    """A cash withdrawal is a transfer into the cash account."""
    return transfer_draft(
        amount,
        source,
        AccountId.CASH,
        description=description.strip() or "Cash Withdrawal",
        when=when,
    )
