"""
Load-time Migration

Records written by older versions of the app can be missing fields or
carry values the current model does not expect. Every backend runs the
raw records through ``normalize_records`` on load, so the rest of the
system only ever sees the current shape.

Repairs (record kept):
- missing/empty accountId  -> configured default account
- targetAccountId on a non-transfer, or empty -> dropped
- missing id               -> new uuid
- category                 -> trimmed, matched to the known labels
- a date that cannot be parsed is kept as text and written back unchanged

Unreadable (left out of the ledger, kept verbatim, warning logged):
- amount that is not a finite non-negative number
- type that is not income/expense/transfer
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional
from uuid import uuid4

import structlog
from pydantic import BaseModel, Field, ValidationError

from smartspend.models.transaction import (
    AccountId,
    Category,
    Transaction,
    TransactionType,
)


logger = structlog.get_logger(__name__)


class MigrationResult(BaseModel):
    """Outcome of normalizing a batch of stored records."""

    transactions: list[Transaction] = Field(default_factory=list)
    repaired: int = Field(default=0, description="Records that needed a fix")
    unreadable: list[Any] = Field(
        default_factory=list,
        description="Stored records that could not be interpreted, kept verbatim"
    )

    @property
    def dropped(self) -> int:
        return len(self.unreadable)

    @property
    def changed(self) -> bool:
        return bool(self.repaired or self.dropped)


def _parse_amount(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def _parse_type(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().lower()
    valid = {t.value for t in TransactionType}
    return text if text in valid else None


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def repair_record(
    record: dict,
    default_account: str = AccountId.SALARY.value,
) -> tuple[Optional[dict], bool]:
    """
    Bring one raw record up to the current shape.

    Returns (repaired record or None if it must be dropped, whether anything changed).
    """
    amount = _parse_amount(record.get("amount"))
    tx_type = _parse_type(record.get("type"))
    if amount is None or tx_type is None:
        return None, False

    fixed = dict(record)
    changed = False

    fixed["amount"] = amount
    fixed["type"] = tx_type

    if _blank(fixed.get("id")):
        fixed["id"] = str(uuid4())
        changed = True
    else:
        fixed["id"] = str(fixed["id"])

    if _blank(fixed.get("accountId")):
        fixed["accountId"] = default_account
        changed = True

    if "targetAccountId" in fixed:
        if tx_type != TransactionType.TRANSFER.value or _blank(fixed["targetAccountId"]):
            fixed.pop("targetAccountId")
            changed = True

    category = Category.canonical(fixed.get("category")) or Category.OTHER.value
    if category != fixed.get("category"):
        fixed["category"] = category
        changed = True

    if fixed.get("description") is None:
        fixed["description"] = ""

    return fixed, changed


def _migrate(
    record: Any,
    default_account: str,
) -> tuple[Optional[Transaction], bool]:
    """One stored record -> (transaction or None if unreadable, whether it was repaired)."""
    if not isinstance(record, dict):
        logger.warning("record_dropped", reason="not_a_record")
        return None, False

    fixed, changed = repair_record(record, default_account)
    if fixed is None:
        logger.warning("record_dropped", reason="uninterpretable", record_id=record.get("id"))
        return None, False

    try:
        return Transaction.model_validate(fixed), changed
    except ValidationError as e:
        logger.warning("record_dropped", reason="invalid", record_id=record.get("id"), error=str(e))
        return None, False


def normalize_record(
    record: dict,
    default_account: str = AccountId.SALARY.value,
) -> Optional[Transaction]:
    """Migrate and parse one stored record. None means the record is unreadable."""
    transaction, _ = _migrate(record, default_account)
    return transaction


def normalize_records(
    records: Iterable[Any],
    default_account: str = AccountId.SALARY.value,
) -> MigrationResult:
    """
    Migrate a whole stored ledger, keeping the stored order.

    Unreadable records are returned verbatim in ``unreadable`` so the
    store can write them back instead of losing them.
    """
    result = MigrationResult()

    for record in records:
        transaction, changed = _migrate(record, default_account)
        if transaction is None:
            result.unreadable.append(record)
            continue
        result.transactions.append(transaction)
        if changed:
            result.repaired += 1

    if result.changed:
        logger.info("migration_applied", repaired=result.repaired, dropped=result.dropped)

    return result
