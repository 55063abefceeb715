"""Sync orchestration: fetch, extract, filter, persist, notify.

One call to :meth:`SyncService.sync` is one ``SyncRun``. The run is created
``running`` and closed exactly once as ``success`` or ``failed``. Per-email
extraction failures degrade to zero items for that email; anything else that
goes wrong fails the run and is re-raised to the caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Protocol
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.integrations.gmail.parser import parse_message
from neriah.models.item import Item
from neriah.repositories.item import ItemRepository
from neriah.repositories.profile import ProfileRepository
from neriah.repositories.sync_run import SyncRunRepository
from neriah.schemas.extraction import ExtractionResult
from neriah.services.candidate_filters import (
    dedupe_candidates,
    filter_by_confidence,
    select_unprocessed,
)
from neriah.services.extractor import ExtractionError, ExtractionRequest
from neriah.services.item_builder import build_item
from neriah.services.pacing import paced_map
from neriah.services.push_notification import NotificationData, new_items_notification
from neriah.services.sync_policy import (
    DEFAULT_POLICIES,
    ModePolicy,
    PacingPolicy,
    SyncMode,
)

if TYPE_CHECKING:
    from neriah.integrations.gmail.models import ParsedEmail
    from neriah.models.profile import Profile
    from neriah.providers.base import MailProvider

logger = structlog.get_logger(__name__)


class SyncError(Exception):
    """Base exception for sync failures."""


class EligibilityError(SyncError):
    """Raised when a user may not run the requested sync mode."""


class ProfileNotFoundError(EligibilityError):
    """Raised when the user has no profile."""

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id
        super().__init__(f"Profile not found for user {user_id}")


class SyncInProgressError(SyncError):
    """Raised when another run already holds the user's sync lock."""

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id
        super().__init__(f"A sync is already running for user {user_id}")


class PersistenceError(SyncError):
    """Raised when the extracted items could not be stored."""


class Extractor(Protocol):
    """Turns one email into extraction candidates."""

    async def extract(self, request: ExtractionRequest) -> ExtractionResult: ...


class Notifier(Protocol):
    """Best-effort user notification."""

    async def notify_user(self, user_id: UUID, data: NotificationData) -> int: ...


@dataclass
class SyncResult:
    """Outcome of a successful run.

    Attributes:
        run_id: ID of the SyncRun row.
        mode: Sync mode that ran.
        emails_fetched: Messages returned by the provider.
        emails_processed: Messages sent to extraction.
        items_created: Items persisted.
        failed_extractions: Emails whose extraction failed or timed out.
    """

    run_id: UUID
    mode: SyncMode
    emails_fetched: int = 0
    emails_processed: int = 0
    items_created: int = 0
    failed_extractions: int = 0

    @property
    def message(self) -> str:
        """Short human-readable summary."""
        if self.emails_processed == 0:
            return "No new emails to process"
        return (
            f"Extracted {self.items_created} item{'s' if self.items_created != 1 else ''} "
            f"from {self.emails_processed} email{'s' if self.emails_processed != 1 else ''}"
        )


@dataclass
class _Extraction:
    email: ParsedEmail
    result: ExtractionResult
    ok: bool = True


class SyncService:
    """Runs initial, manual and scheduled syncs for one user at a time."""

    LOCK_LEASE = timedelta(minutes=15)

    def __init__(
        self,
        session: AsyncSession,
        mail_provider: MailProvider,
        extractor: Extractor,
        notifier: Notifier | None = None,
        *,
        pacing: PacingPolicy | None = None,
        policies: dict[SyncMode, ModePolicy] | None = None,
        items: ItemRepository | None = None,
        runs: SyncRunRepository | None = None,
        profiles: ProfileRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            session: Database session shared by the repositories.
            mail_provider: Source of raw messages.
            extractor: LLM extraction collaborator.
            notifier: Push notifier; notifications are skipped when None.
            pacing: Extraction concurrency and spacing.
            policies: Per-mode limits, defaults to DEFAULT_POLICIES.
            items: Item repository override.
            runs: SyncRun repository override.
            profiles: Profile repository override.
            clock: Source of "now", for tests.
        """
        self.session = session
        self.mail_provider = mail_provider
        self.extractor = extractor
        self.notifier = notifier
        self.pacing = pacing or PacingPolicy()
        self.policies = policies or DEFAULT_POLICIES
        self.items = items or ItemRepository(session)
        self.runs = runs or SyncRunRepository(session)
        self.profiles = profiles or ProfileRepository(session)
        self._clock = clock or (lambda: datetime.now(UTC))

    async def run_initial(self, user_id: UUID) -> SyncResult:
        """First extraction after the user connects their mailbox."""
        return await self.sync(user_id, SyncMode.INITIAL)

    async def run_manual(self, user_id: UUID) -> SyncResult:
        """User-requested sync since the last run."""
        return await self.sync(user_id, SyncMode.MANUAL)

    async def run_scheduled(self, user_id: UUID) -> SyncResult:
        """Sync performed by the periodic sweep."""
        return await self.sync(user_id, SyncMode.SCHEDULED)

    async def sync(self, user_id: UUID, mode: SyncMode) -> SyncResult:
        """Run one sync for a user.

        Args:
            user_id: User to sync.
            mode: Trigger mode, selects limits and eligibility rules.

        Returns:
            Counts for the completed run.

        Raises:
            EligibilityError: If the user may not run this mode. No run is recorded.
            SyncInProgressError: If another run holds the lock. No run is recorded.
            Exception: Anything that failed the run, after it is marked failed.
                Cancellation also marks the run failed before propagating.
        """
        policy = self.policies[mode]
        await self._load_eligible(user_id, mode)

        if not await self.profiles.claim_sync_lock(user_id, self.LOCK_LEASE):
            await logger.awarning(
                "sync_rejected_in_progress", user_id=str(user_id), mode=mode.value
            )
            raise SyncInProgressError(user_id)

        try:
            # A run that finished between the first read and the claim may have
            # completed the initial extraction or moved last_sync_at.
            profile = await self._load_eligible(user_id, mode)
            run = await self.runs.start(user_id, mode.value)
            run_id = run.id
            await logger.ainfo(
                "sync_started", user_id=str(user_id), mode=mode.value, sync_run_id=str(run_id)
            )
            try:
                result = await self._execute(user_id, run_id, policy, profile.last_sync_at)
            except BaseException as e:
                if isinstance(e, asyncio.CancelledError):
                    error_message = "Sync cancelled"
                else:
                    error_message = str(e) or type(e).__name__
                await self.session.rollback()
                await self.runs.fail(run_id, error_message)
                await logger.aerror(
                    "sync_failed",
                    user_id=str(user_id),
                    mode=mode.value,
                    sync_run_id=str(run_id),
                    error=error_message,
                    error_type=type(e).__name__,
                )
                raise
        finally:
            await self.profiles.release_sync_lock(user_id)

        await logger.ainfo(
            "sync_completed",
            user_id=str(user_id),
            mode=mode.value,
            sync_run_id=str(run_id),
            emails_fetched=result.emails_fetched,
            emails_processed=result.emails_processed,
            items_created=result.items_created,
            failed_extractions=result.failed_extractions,
        )
        return result

    async def _load_eligible(self, user_id: UUID, mode: SyncMode) -> Profile:
        profile = await self.profiles.get(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        self._check_eligibility(profile.initial_extraction_completed, profile.sync_enabled, mode)
        return profile

    @staticmethod
    def _check_eligibility(initial_done: bool, sync_enabled: bool, mode: SyncMode) -> None:
        if mode is SyncMode.INITIAL:
            if initial_done:
                raise EligibilityError("Initial extraction already completed")
            return
        if not initial_done:
            raise EligibilityError("Initial extraction must be completed before syncing")
        if mode is SyncMode.SCHEDULED and not sync_enabled:
            raise EligibilityError("Scheduled sync is disabled for this user")

    async def _execute(
        self,
        user_id: UUID,
        run_id: UUID,
        policy: ModePolicy,
        last_sync_at: datetime | None,
    ) -> SyncResult:
        now = self._clock()
        result = SyncResult(run_id=run_id, mode=policy.mode)

        lookback_days = policy.lookback_days(last_sync_at, now)
        raw_messages = await self.mail_provider.fetch_recent_messages(
            user_id, lookback_days, policy.fetch_limit
        )
        raw_messages = raw_messages[: policy.fetch_limit]
        result.emails_fetched = len(raw_messages)
        if not raw_messages:
            return await self._finish(user_id, result, policy, now)

        emails = [parse_message(raw) for raw in raw_messages]
        processed_ids = await self.items.find_existing_email_ids(
            user_id, [email.message_id for email in emails]
        )
        fresh = select_unprocessed(emails, processed_ids)
        if not fresh:
            await logger.ainfo(
                "sync_nothing_new", user_id=str(user_id), emails_fetched=len(emails)
            )
            return await self._finish(user_id, result, policy, now)

        extractions = await paced_map(self._extract_one, fresh, self.pacing)
        result.emails_processed = len(fresh)
        result.failed_extractions = sum(1 for extraction in extractions if not extraction.ok)

        rows: list[Item] = []
        for extraction in extractions:
            candidates = filter_by_confidence(
                extraction.result.items, policy.confidence_threshold
            )
            for candidate in dedupe_candidates(candidates):
                rows.append(
                    build_item(candidate, extraction.email, user_id, extraction.result.summary)
                )

        if rows:
            try:
                await self.items.create_many(rows)
            except SQLAlchemyError as e:
                raise PersistenceError(f"Failed to store {len(rows)} items: {e}") from e
            result.items_created = len(rows)
            await self._notify(user_id, len(rows))

        return await self._finish(user_id, result, policy, now)

    async def _extract_one(self, email: ParsedEmail) -> _Extraction:
        request = ExtractionRequest.from_email(email)
        try:
            extraction_result = await asyncio.wait_for(
                self.extractor.extract(request),
                timeout=self.pacing.extraction_timeout_seconds,
            )
        except TimeoutError:
            await logger.awarning(
                "extraction_timed_out",
                message_id=email.message_id,
                timeout_seconds=self.pacing.extraction_timeout_seconds,
            )
            return _Extraction(email=email, result=ExtractionResult.failed(), ok=False)
        except ExtractionError as e:
            await logger.awarning(
                "extraction_failed",
                message_id=email.message_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return _Extraction(email=email, result=ExtractionResult.failed(), ok=False)
        except Exception as e:
            await logger.aexception(
                "extraction_crashed", message_id=email.message_id, error=str(e)
            )
            return _Extraction(email=email, result=ExtractionResult.failed(), ok=False)
        return _Extraction(email=email, result=extraction_result)

    async def _notify(self, user_id: UUID, count: int) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.notify_user(user_id, new_items_notification(count))
        except Exception as e:
            await logger.awarning("notification_failed", user_id=str(user_id), error=str(e))

    async def _finish(
        self,
        user_id: UUID,
        result: SyncResult,
        policy: ModePolicy,
        now: datetime,
    ) -> SyncResult:
        await self.runs.complete(
            result.run_id,
            emails_fetched=result.emails_fetched,
            emails_processed=result.emails_processed,
            items_created=result.items_created,
        )
        await self.profiles.mark_synced(
            user_id, now, initial_completed=policy.mode is SyncMode.INITIAL
        )
        return result
