"""Tests for confidence filtering and deduplication."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from neriah.integrations.gmail.models import ParsedEmail
from neriah.schemas.extraction import ExtractedMeeting, ExtractedReceipt, ExtractedTask
from neriah.services.candidate_filters import (
    candidate_key,
    dedupe_candidates,
    filter_by_confidence,
    select_unprocessed,
)


def _task(title: str, confidence: float = 0.9) -> ExtractedTask:
    return ExtractedTask(type="task", title=title, confidence=confidence)


def _email(message_id: str) -> ParsedEmail:
    return ParsedEmail(
        message_id=message_id,
        thread_id="t",
        from_="a@b.com",
        to="",
        subject="",
        date="",
        snippet="",
        body="",
        internal_date=datetime(2026, 1, 1, tzinfo=UTC),
    )


class TestFilterByConfidence:
    """Tests for filter_by_confidence."""

    @pytest.mark.parametrize(
        ("confidence", "threshold", "kept"),
        [
            (0.49, 0.5, False),
            (0.50, 0.5, True),
            (0.69, 0.7, False),
            (0.70, 0.7, True),
        ],
    )
    def test_threshold_is_inclusive(self, confidence: float, threshold: float, kept: bool) -> None:
        """Test candidates at exactly the threshold survive."""
        result = filter_by_confidence([_task("x", confidence)], threshold)

        assert bool(result) is kept

    def test_preserves_order(self) -> None:
        """Test surviving candidates keep their order."""
        items = [_task("a", 0.9), _task("b", 0.1), _task("c", 0.8)]

        assert [i.title for i in filter_by_confidence(items, 0.5)] == ["a", "c"]


class TestDedupeCandidates:
    """Tests for dedupe_candidates."""

    def test_collapses_same_type_and_title(self) -> None:
        """Test repeats of the same task collapse to the first."""
        first = _task("Reply to Ann", 0.9)
        items = [first, _task("Reply to Ann", 0.95)]

        assert dedupe_candidates(items) == [first]

    def test_keeps_different_types(self) -> None:
        """Test a meeting and a task with the same title are both kept."""
        meeting = ExtractedMeeting(type="meeting", title="Sync", confidence=0.9)
        task = _task("Sync")

        assert dedupe_candidates([meeting, task]) == [meeting, task]

    def test_receipts_keyed_by_vendor(self) -> None:
        """Test receipts dedupe on vendor."""
        a = ExtractedReceipt(type="receipt", vendor="AWS", amount=1, confidence=0.9)
        b = ExtractedReceipt(type="receipt", vendor="AWS", amount=2, confidence=0.9)

        assert candidate_key(a) == ("receipt", "AWS")
        assert dedupe_candidates([a, b]) == [a]


class TestSelectUnprocessed:
    """Tests for select_unprocessed."""

    def test_drops_already_processed(self) -> None:
        """Test emails with persisted items are skipped."""
        emails = [_email("m1"), _email("m2"), _email("m3")]

        fresh = select_unprocessed(emails, {"m2"})

        assert [e.message_id for e in fresh] == ["m1", "m3"]

    def test_collapses_batch_duplicates(self) -> None:
        """Test the same message twice in one batch is kept once."""
        fresh = select_unprocessed([_email("m1"), _email("m1")], set())

        assert [e.message_id for e in fresh] == ["m1"]
