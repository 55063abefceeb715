"""Per-mode sync settings and extraction pacing."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from neriah.core.config import Config


class SyncMode(str, Enum):
    """How a sync was triggered."""

    INITIAL = "initial"
    MANUAL = "manual"
    SCHEDULED = "scheduled"


@dataclass(frozen=True)
class ModePolicy:
    """Limits applied to one sync mode.

    Attributes:
        mode: Sync mode this policy applies to.
        confidence_threshold: Minimum candidate confidence, inclusive.
        max_lookback_days: Upper bound on the lookback window.
        fixed_lookback_days: Use this window regardless of last sync, if set.
        fetch_limit: Maximum messages requested from the provider.
    """

    mode: SyncMode
    confidence_threshold: float
    max_lookback_days: int
    fixed_lookback_days: int | None = None
    fetch_limit: int = 50

    def lookback_days(self, last_sync_at: datetime | None, now: datetime) -> int:
        """Compute the lookback window in whole days.

        Days since the last sync are rounded up, default to 1 when the user
        has never synced, and are clamped to ``[1, max_lookback_days]``.
        """
        if self.fixed_lookback_days is not None:
            return self.fixed_lookback_days
        if last_sync_at is None:
            return 1
        elapsed = (now - last_sync_at).total_seconds() / 86400
        return max(1, min(self.max_lookback_days, math.ceil(elapsed)))


DEFAULT_POLICIES: dict[SyncMode, ModePolicy] = {
    SyncMode.INITIAL: ModePolicy(
        mode=SyncMode.INITIAL,
        confidence_threshold=0.5,
        max_lookback_days=1,
        fixed_lookback_days=1,
        fetch_limit=5,
    ),
    SyncMode.MANUAL: ModePolicy(
        mode=SyncMode.MANUAL,
        confidence_threshold=0.7,
        max_lookback_days=7,
    ),
    SyncMode.SCHEDULED: ModePolicy(
        mode=SyncMode.SCHEDULED,
        confidence_threshold=0.7,
        max_lookback_days=3,
    ),
}


def policies_from_config(config: Config) -> dict[SyncMode, ModePolicy]:
    """Apply configured confidence thresholds to the default mode policies."""
    return {
        mode: replace(
            policy,
            confidence_threshold=(
                config.initial_confidence_threshold
                if mode is SyncMode.INITIAL
                else config.sync_confidence_threshold
            ),
        )
        for mode, policy in DEFAULT_POLICIES.items()
    }


@dataclass(frozen=True)
class PacingPolicy:
    """How extraction calls are spread over time.

    ``max_concurrent_extractions=1`` with a non-zero delay gives strictly
    sequential processing sized to a token-per-minute budget; a higher cap
    with no delay fans out and leans on the provider's own limits.

    Attributes:
        max_concurrent_extractions: Calls allowed in flight at once.
        inter_request_delay_seconds: Minimum spacing between call starts.
        extraction_timeout_seconds: Per-call timeout; a timed-out email
            yields zero items.
    """

    max_concurrent_extractions: int = 5
    inter_request_delay_seconds: float = 0.0
    extraction_timeout_seconds: float = 60.0

    def __post_init__(self) -> None:
        if self.max_concurrent_extractions < 1:
            raise ValueError("max_concurrent_extractions must be >= 1")
        if self.inter_request_delay_seconds < 0:
            raise ValueError("inter_request_delay_seconds must be >= 0")
        if self.extraction_timeout_seconds <= 0:
            raise ValueError("extraction_timeout_seconds must be > 0")
