"""
Main Orchestrator for SmartSpend

This module ties together all the components and defines the
end-to-end flows for:
1. Ledger changes (draft → validate → snapshot → save locally → push to cloud)
2. Advice (snapshot → advisor → markdown) and category suggestions

DESIGN DECISION: The orchestrator enforces the boundaries:
- The in-memory snapshot is replaced first; storage follows it
- A failed save or sync never rolls the snapshot back
- Boundary failures come back as notices, never as exceptions
- Every step is audited

This is the "glue" that keeps the UI responsive even when the disk
or the network misbehaves.
"""

from typing import Iterable, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from smartspend.agents import AdvisorAgent, CategorizerAgent
from smartspend.agents.ai_agents import (
    ADVICE_UNAVAILABLE_MESSAGE,
    EMPTY_LEDGER_MESSAGE,
    NO_ADVICE_MESSAGE,
)
from smartspend.audit import AuditLogger, create_correlation_id
from smartspend.config import Settings, get_settings
from smartspend.ledger import LedgerSnapshot
from smartspend.models.transaction import (
    Category,
    Transaction,
    TransactionDraft,
    ValidationResult,
)
from smartspend.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionStorage,
    LocalJsonTransactionStorage,
    TransactionStorageInterface,
)
from smartspend.validation import TransactionValidator


logger = structlog.get_logger(__name__)


class LedgerResult(BaseModel):
    """Outcome of a ledger change, as shown to the user."""

    success: bool = Field(
        ...,
        description="Whether the snapshot was changed"
    )
    transaction: Optional[Transaction] = None
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="Every record added, for batch entries"
    )
    validation: Optional[ValidationResult] = None
    notices: list[str] = Field(
        default_factory=list,
        description="User-visible messages about saves/syncs that did not work"
    )


def prepare_draft(draft: TransactionDraft) -> TransactionDraft:
    """
    Canonical form of an entry before it is stored.

    Category labels are matched to the known set and the destination
    account is dropped from anything that is not a transfer.
    """
    updates = {"category": Category.canonical(draft.category) or Category.OTHER.value}
    if not draft.is_transfer:
        updates["target_account_id"] = None
    return draft.model_copy(update=updates)


class LedgerFlow:
    """
    Orchestrates every change to the ledger.

    Flow:
    1. Validate → blocking errors stop here
    2. Replace snapshot → UI sees the change immediately
    3. Save locally → failure becomes a notice
    4. Push to cloud (if configured) → failure becomes a notice

    Concurrent saves are last-write-wins: each save writes the
    snapshot that was current when its change was made.
    """

    def __init__(
        self,
        local_storage: TransactionStorageInterface,
        cloud_storage: Optional[TransactionStorageInterface] = None,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._local = local_storage
        self._cloud = cloud_storage
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._snapshot = LedgerSnapshot()

    @property
    def snapshot(self) -> LedgerSnapshot:
        return self._snapshot

    @property
    def cloud_enabled(self) -> bool:
        return self._cloud is not None

    async def load(self, correlation_id: Optional[UUID] = None) -> list[str]:
        """
        Load the ledger from local storage.

        Repaired records are written straight back so the file only
        ever holds the current shape. If any record could not be read
        at all, nothing is written and the user gets a notice.

        Returns:
            Notices for the user (empty when everything worked)
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            transactions = await self._local.load()
        except Exception as e:
            await self._audit_logger.log_error(
                error_type="ledger_load_failed",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return [f"Could not load your saved transactions: {e}"]

        self._snapshot = LedgerSnapshot(transactions)
        await self._audit_logger.log_ledger_loaded(len(transactions), "local", correlation_id)

        migration = getattr(self._local, "last_migration", None)
        if migration is None or not migration.changed:
            return []

        await self._audit_logger.log_migration_applied(
            migration.repaired,
            migration.dropped,
            correlation_id,
        )
        if migration.dropped:
            # The file keeps the records we could not read
            return [
                f"{migration.dropped} saved records could not be read. "
                "They are left untouched in your file and are not counted."
            ]
        return await self._save_local(self._snapshot, correlation_id)

    async def add_transaction(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """Validate a draft, give it an id and put it at the top of the ledger."""
        correlation_id = correlation_id or create_correlation_id()

        validation = self._validator.validate(draft)
        if validation.has_errors:
            await self._audit_logger.log_validation_failed(
                [issue.model_dump() for issue in validation.issues],
                correlation_id,
            )
            return LedgerResult(success=False, validation=validation)

        transaction = Transaction.from_draft(prepare_draft(draft))
        self._snapshot = self._snapshot.with_added(transaction)
        await self._audit_logger.log_transaction_added(transaction, correlation_id)

        notices = await self._persist(self._snapshot, correlation_id)
        return LedgerResult(
            success=True,
            transaction=transaction,
            validation=validation,
            notices=notices,
        )

    async def add_transactions(
        self,
        drafts: Iterable[TransactionDraft],
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """
        Add several drafts with a single snapshot replace and a single save.

        All or nothing: if any draft has blocking errors, none is added.
        """
        correlation_id = correlation_id or create_correlation_id()
        drafts = list(drafts)

        for draft in drafts:
            validation = self._validator.validate(draft)
            if validation.has_errors:
                await self._audit_logger.log_validation_failed(
                    [issue.model_dump() for issue in validation.issues],
                    correlation_id,
                )
                return LedgerResult(success=False, validation=validation)

        transactions = [Transaction.from_draft(prepare_draft(draft)) for draft in drafts]
        if not transactions:
            return LedgerResult(success=False)

        self._snapshot = self._snapshot.with_added_all(transactions)
        for transaction in transactions:
            await self._audit_logger.log_transaction_added(transaction, correlation_id)

        notices = await self._persist(self._snapshot, correlation_id)
        return LedgerResult(success=True, transactions=transactions, notices=notices)

    async def update_transaction(
        self,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """Replace a transaction (same id) with a new version."""
        correlation_id = correlation_id or create_correlation_id()

        if self._snapshot.get(transaction.id) is None:
            return LedgerResult(success=False, notices=["Transaction not found."])

        validation = self._validator.validate(transaction)
        if validation.has_errors:
            await self._audit_logger.log_validation_failed(
                [issue.model_dump() for issue in validation.issues],
                correlation_id,
            )
            return LedgerResult(success=False, validation=validation)

        prepared = Transaction.from_draft(prepare_draft(transaction), transaction.id)
        self._snapshot = self._snapshot.with_updated(prepared)
        await self._audit_logger.log_transaction_updated(prepared.id, correlation_id)

        notices = await self._persist(self._snapshot, correlation_id)
        return LedgerResult(
            success=True,
            transaction=prepared,
            validation=validation,
            notices=notices,
        )

    async def delete_transaction(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> LedgerResult:
        """Remove a transaction. Unknown ids leave the ledger untouched."""
        correlation_id = correlation_id or create_correlation_id()

        existing = self._snapshot.get(transaction_id)
        if existing is None:
            return LedgerResult(success=False, notices=["Transaction not found."])

        self._snapshot = self._snapshot.with_deleted(transaction_id)
        await self._audit_logger.log_transaction_deleted(transaction_id, correlation_id)

        notices = await self._persist(self._snapshot, correlation_id)
        return LedgerResult(success=True, transaction=existing, notices=notices)

    async def sync_to_cloud(self, correlation_id: Optional[UUID] = None) -> list[str]:
        """Push the current snapshot to the cloud copy."""
        correlation_id = correlation_id or create_correlation_id()
        if self._cloud is None:
            return ["Cloud sync is not configured."]
        return await self._save_cloud(self._snapshot, correlation_id)

    async def _persist(self, snapshot: LedgerSnapshot, correlation_id: UUID) -> list[str]:
        notices = await self._save_local(snapshot, correlation_id)
        if self._cloud is not None:
            notices.extend(await self._save_cloud(snapshot, correlation_id))
        return notices

    async def _save_local(self, snapshot: LedgerSnapshot, correlation_id: UUID) -> list[str]:
        try:
            await self._local.save(list(snapshot))
        except Exception as e:
            await self._audit_logger.log_save_failed("local", str(e), correlation_id)
            return [f"Could not save locally: {e}"]
        await self._audit_logger.log_ledger_saved(len(snapshot), "local", correlation_id)
        return []

    async def _save_cloud(self, snapshot: LedgerSnapshot, correlation_id: UUID) -> list[str]:
        try:
            await self._cloud.save(list(snapshot))
        except Exception as e:
            await self._audit_logger.log_save_failed("cloud", str(e), correlation_id)
            return [f"Cloud sync failed, your data is saved on this device: {e}"]
        await self._audit_logger.log_ledger_saved(len(snapshot), "cloud", correlation_id)
        return []


class AdviceFlow:
    """
    Orchestrates the AI features.

    Both calls always return - the agents turn failures into a
    placeholder message or None, and this flow records which it was.
    """

    def __init__(
        self,
        advisor: Optional[AdvisorAgent] = None,
        categorizer: Optional[CategorizerAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
        advice_window: int = 50,
    ):
        self._advisor = advisor or AdvisorAgent(advice_window=advice_window)
        self._categorizer = categorizer or CategorizerAgent()
        self._audit_logger = audit_logger or AuditLogger()

    async def get_advice(
        self,
        transactions: Iterable[Transaction],
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """Advice over a snapshot (or any list of transactions)."""
        correlation_id = correlation_id or create_correlation_id()
        transactions = list(transactions)

        await self._audit_logger.log_advice_requested(len(transactions), correlation_id)
        advice = await self._advisor.get_advice(transactions)

        if advice in (ADVICE_UNAVAILABLE_MESSAGE, NO_ADVICE_MESSAGE):
            await self._audit_logger.log_advice_failed(advice, correlation_id)
        elif advice != EMPTY_LEDGER_MESSAGE:
            await self._audit_logger.log_advice_generated(len(advice), correlation_id)

        return advice

    async def suggest_category(
        self,
        description: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[str]:
        correlation_id = correlation_id or create_correlation_id()
        category = await self._categorizer.suggest_category(description)
        await self._audit_logger.log_category_suggested(description, category, correlation_id)
        return category


def create_app_components(
    use_cloud: bool = True,
    settings: Optional[Settings] = None,
) -> tuple[LedgerFlow, AdviceFlow]:
    """
    Factory function to create all application components.

    Args:
        use_cloud: Whether to initialize Google Sheets sync.
                   Set to False for local-only use and tests.
        settings: Settings to build from (defaults to get_settings()).

    Returns:
        (ledger_flow, advice_flow)
    """
    settings = settings or get_settings()
    app_settings = settings.app

    local_storage = LocalJsonTransactionStorage(
        app_settings.ledger_path,
        default_account=app_settings.default_account,
    )
    cloud_storage = None
    audit_logger = AuditLogger()  # Local-only logging

    if use_cloud:
        try:
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            cloud_storage = GoogleSheetsTransactionStorage(
                sheets_client,
                default_account=app_settings.default_account,
            )
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Cloud not configured - continue local-only
            logger.warning("cloud_sync_not_configured", error=str(e))
            cloud_storage = None

    ledger_flow = LedgerFlow(
        local_storage=local_storage,
        cloud_storage=cloud_storage,
        validator=TransactionValidator(app_settings),
        audit_logger=audit_logger,
    )

    advice_flow = AdviceFlow(
        audit_logger=audit_logger,
        advice_window=app_settings.advice_window,
    )

    return ledger_flow, advice_flow
