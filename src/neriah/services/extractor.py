"""LLM extraction of tasks, receipts and meetings from a single email."""

from __future__ import annotations

import json
import os
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import litellm
import structlog

from neriah.schemas.extraction import ExtractionResult, parse_extraction_payload

if TYPE_CHECKING:
    from neriah.integrations.gmail.models import ParsedEmail

# Suppress LiteLLM debug messages
os.environ["LITELLM_LOG"] = "ERROR"
litellm.suppress_debug_info = True

logger = structlog.get_logger(__name__)

# Model mapping (LiteLLM format)
MODELS = {
    "gpt5": "gpt-5-mini",
    "haiku": "anthropic/claude-haiku-4-5",
    "sonnet": "anthropic/claude-sonnet-4-5",
}

DEFAULT_MODEL = "sonnet"
MAX_BODY_CHARS = 1000

EXTRACTION_PROMPT = """You extract actionable items from a single email.

Look for three kinds of item:
1. Tasks: anything the recipient must do (reply, follow up, meet a deadline, review, act).
2. Receipts: invoices, order confirmations, payment receipts.
3. Meetings: meeting requests, calendar invites, scheduled calls.

## Tasks
- priority: "urgent" (explicitly urgent), "high" (time-sensitive or important sender),
  "medium" (ordinary action item), "low" (FYI that may eventually need action)
- category: "reply", "follow_up", "deadline", "action_required" or "review"

## Receipts
- vendor, amount (a number), currency (ISO code), date (YYYY-MM-DD), invoiceNumber if present
- category: groceries, software, hardware, dining, meals, travel, medical, office,
  utilities or other

## Meetings
- title, dateTime (ISO 8601), duration in minutes, attendee email addresses, description

## Confidence
- 0.9-1.0: explicit and unambiguous
- 0.7-0.89: strong indicators
- 0.5-0.69: plausible but ambiguous
- below 0.5: probably a false positive

Extract at most one item of each type per email. Skip newsletters, marketing and spam.

## Email
{email_context}

Respond with JSON only, no markdown:
{{"items": [
  {{"type": "task", "title": "...", "description": "...", "priority": "high",
    "category": "reply", "confidence": 0.9}},
  {{"type": "receipt", "vendor": "...", "amount": 99.99, "currency": "USD",
    "date": "2026-01-22", "category": "software", "invoiceNumber": "INV-1", "confidence": 0.95}},
  {{"type": "meeting", "title": "...", "dateTime": "2026-01-25T14:00:00Z", "duration": 30,
    "attendees": ["person@example.com"], "description": "...", "confidence": 0.85}}
 ],
 "summary": "One sentence on what was found",
 "processingNotes": "Optional notes on ambiguity"}}

If nothing is actionable return {{"items": [], "summary": "No actionable items found"}}."""

_JSON_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


class ExtractionError(Exception):
    """Base exception for extraction failures."""


class MalformedExtractionError(ExtractionError):
    """Raised when the model's output is not the expected JSON object."""


class ExtractionTransportError(ExtractionError):
    """Raised when the model provider call itself fails."""


@dataclass
class ExtractionRequest:
    """What the model sees for one email.

    Attributes:
        from_: Raw From header.
        subject: Subject line.
        body: Body text, truncated to MAX_BODY_CHARS.
        date: Raw Date header.
        has_attachments: Whether the email carries attachments.
        attachments: (filename, mime_type) pairs.
    """

    from_: str
    subject: str
    body: str
    date: str
    has_attachments: bool = False
    attachments: list[tuple[str, str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.body = self.body[:MAX_BODY_CHARS]

    @classmethod
    def from_email(cls, email: ParsedEmail) -> ExtractionRequest:
        """Build a request from a normalized email."""
        return cls(
            from_=email.from_,
            subject=email.subject,
            body=email.body,
            date=email.date,
            has_attachments=email.has_attachments,
            attachments=[(a.filename, a.mime_type) for a in email.attachments],
        )


def build_email_context(request: ExtractionRequest) -> str:
    """Render the email block inserted into the prompt."""
    lines = [
        f"From: {request.from_}",
        f"Subject: {request.subject}",
        f"Date: {request.date}",
        f"Has Attachments: {'yes' if request.has_attachments else 'no'}",
    ]
    if request.attachments:
        listed = ", ".join(f"{name} ({mime})" for name, mime in request.attachments)
        lines.append(f"Attachments: {listed}")
    lines.extend(["", "Body:", request.body])
    return "\n".join(lines)


def parse_llm_response(text: str) -> dict[str, Any]:
    """Decode the model's reply into a JSON object.

    Args:
        text: Raw completion text, optionally wrapped in a code fence.

    Returns:
        Decoded JSON object.

    Raises:
        MalformedExtractionError: If the text is not a JSON object.
    """
    text = text.strip()
    if "```" in text:
        match = _JSON_FENCE.search(text)
        if match:
            text = match.group(1)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedExtractionError(f"Response is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedExtractionError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload


CompletionFunc = Callable[..., Awaitable[Any]]


class LLMExtractor:
    """Extracts items from one email per call using LiteLLM."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
        completion_func: CompletionFunc | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            model: Key into MODELS, or a full LiteLLM model name.
            api_key: Provider API key; LiteLLM reads the environment when None.
            max_tokens: Completion token cap.
            temperature: Sampling temperature.
            completion_func: Async completion callable, defaults to
                ``litellm.acompletion``.
        """
        self.model = MODELS.get(model, model)
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._completion = completion_func or litellm.acompletion

    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """Extract candidate items from one email.

        Args:
            request: The email to analyze.

        Returns:
            Validated result. Individually malformed items are dropped.

        Raises:
            ExtractionTransportError: If the provider call fails.
            MalformedExtractionError: If the reply is not a JSON object.
        """
        prompt = EXTRACTION_PROMPT.format(email_context=build_email_context(request))
        completion_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if self.api_key:
            completion_kwargs["api_key"] = self.api_key

        try:
            response = await self._completion(**completion_kwargs)
            text = response.choices[0].message.content or ""
        except Exception as e:
            raise ExtractionTransportError(f"{type(e).__name__}: {e}") from e

        payload = parse_llm_response(text)
        result, rejected = parse_extraction_payload(payload)
        if rejected:
            await logger.awarning(
                "extraction_items_rejected",
                subject=request.subject,
                rejected=len(rejected),
                reasons=rejected,
            )
        await logger.adebug(
            "extraction_completed", subject=request.subject, items=len(result.items)
        )
        return result
