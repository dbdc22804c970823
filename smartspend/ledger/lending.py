"""
Lending tracker.

Loans are ordinary ledger entries in the Lending category. The person
is carried in the description:

    "Lent to <name>"      expense - money goes out
    "Returned by <name>"  income  - money comes back

so the lending view is just another fold over the same snapshot.
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

from smartspend.models.transaction import (
    AccountId,
    Category,
    LendingEntry,
    LendingKind,
    PersonBalance,
    Transaction,
    TransactionDraft,
    TransactionType,
    local_now,
)


LEND_PATTERN = re.compile(r"Lent to\s+(.*)", re.IGNORECASE)
RETURN_PATTERN = re.compile(r"Returned by\s+(.*)", re.IGNORECASE)


def parse_lending(t: Transaction) -> Optional[LendingEntry]:
    """Resolve a transaction to (person, lend/recover), or None if it isn't one."""
    if t.category != Category.LENDING.value:
        return None

    match = LEND_PATTERN.search(t.description)
    if match and match.group(1).strip():
        return LendingEntry(name=match.group(1).strip(), kind=LendingKind.LEND, amount=t.amount)

    match = RETURN_PATTERN.search(t.description)
    if match and match.group(1).strip():
        return LendingEntry(name=match.group(1).strip(), kind=LendingKind.RECOVER, amount=t.amount)

    return None


def people_balances(transactions: Iterable[Transaction]) -> list[PersonBalance]:
    """
    Outstanding balance per person (lent minus returned).

    Most recently active first; people with no dated activity last.
    """
    people: dict[str, PersonBalance] = {}

    for t in transactions:
        entry = parse_lending(t)
        if entry is None:
            continue

        person = people.get(entry.name) or PersonBalance(name=entry.name)
        delta = entry.amount if entry.kind == LendingKind.LEND else -entry.amount
        last = person.last_activity
        if t.date is not None and (last is None or t.date > last):
            last = t.date
        people[entry.name] = person.model_copy(
            update={"balance": person.balance + delta, "last_activity": last}
        )

    return sorted(
        people.values(),
        key=lambda p: (p.last_activity is not None, p.last_activity or datetime.min),
        reverse=True,
    )


def search_people(people: Iterable[PersonBalance], term: str) -> list[PersonBalance]:
    needle = term.strip().casefold()
    return [p for p in people if needle in p.name.casefold()]


def person_history(transactions: Iterable[Transaction], name: str) -> list[Transaction]:
    """All lending records for one person, newest first."""
    history = []
    for t in transactions:
        entry = parse_lending(t)
        if entry is not None and entry.name == name:
            history.append(t)
    history.sort(key=lambda t: t.date or datetime.min, reverse=True)
    return history


def lend_draft(
    name: str,
    amount: Decimal,
    account: Union[AccountId, str] = AccountId.CASH,
    when: Optional[datetime] = None,
) -> TransactionDraft:
    return TransactionDraft(
        amount=amount,
        type=TransactionType.EXPENSE,
        category=Category.LENDING,
        description=f"Lent to {name.strip()}",
        date=when or local_now(),
        account_id=account,
    )


def recovery_draft(
    name: str,
    amount: Decimal,
    account: Union[AccountId, str] = AccountId.CASH,
    when: Optional[datetime] = None,
) -> TransactionDraft:
    return TransactionDraft(
        amount=amount,
        type=TransactionType.INCOME,
        category=Category.LENDING,
        description=f"Returned by {name.strip()}",
        date=when or local_now(),
        account_id=account,
    )
