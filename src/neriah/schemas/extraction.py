"""Schemas for LLM extraction output.

The model is asked for ``{"items": [...], "summary": "..."}`` where each item
is tagged by ``type``. Items are validated one at a time so a single malformed
candidate never discards its siblings.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, get_args

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

TaskCategory = Literal["reply", "follow_up", "deadline", "action_required", "review"]
ReceiptCategory = Literal[
    "software",
    "travel",
    "medical",
    "office",
    "meals",
    "dining",
    "utilities",
    "groceries",
    "hardware",
    "other",
]

_TASK_CATEGORIES: frozenset[str] = frozenset(get_args(TaskCategory))
_RECEIPT_CATEGORIES: frozenset[str] = frozenset(get_args(ReceiptCategory))

Confidence = Annotated[float, Field(ge=0.0, le=1.0)]


class _Candidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ExtractedTask(_Candidate):
    """Something the user needs to do."""

    type: Literal["task"]
    title: str = Field(min_length=1)
    description: str = ""
    # Free-form here; mapped onto the stored vocabulary by the item builder
    priority: str | None = None
    category: TaskCategory = "action_required"
    confidence: Confidence

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower().replace("-", "_").replace(" ", "_")
            return value if value in _TASK_CATEGORIES else "action_required"
        return "action_required" if value is None else value


class ExtractedReceipt(_Candidate):
    """A purchase confirmation, receipt or invoice."""

    type: Literal["receipt"]
    vendor: str = Field(min_length=1)
    amount: float
    currency: str = "USD"
    date: str = ""
    category: ReceiptCategory = "other"
    invoice_number: str | None = Field(
        default=None, validation_alias=AliasChoices("invoiceNumber", "invoice_number")
    )
    confidence: Confidence

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            return value if value in _RECEIPT_CATEGORIES else "other"
        return "other" if value is None else value

    @field_validator("currency", mode="before")
    @classmethod
    def _default_currency(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "USD"
        return value.strip().upper() if isinstance(value, str) else value


class ExtractedMeeting(_Candidate):
    """A meeting request or scheduling thread."""

    type: Literal["meeting"]
    title: str = Field(min_length=1)
    date_time: str | None = Field(
        default=None, validation_alias=AliasChoices("dateTime", "date_time")
    )
    duration_minutes: int | None = Field(
        default=None,
        validation_alias=AliasChoices("duration", "durationMinutes", "duration_minutes"),
        gt=0,
    )
    attendees: list[str] = Field(default_factory=list)
    description: str = ""
    confidence: Confidence

    @field_validator("attendees", mode="before")
    @classmethod
    def _default_attendees(cls, value: Any) -> Any:
        return [] if value is None else value


ExtractedItem = Annotated[
    ExtractedTask | ExtractedReceipt | ExtractedMeeting,
    Field(discriminator="type"),
]

_item_adapter: TypeAdapter[ExtractedItem] = TypeAdapter(ExtractedItem)


class ExtractionResult(BaseModel):
    """Validated extraction for one email."""

    items: list[ExtractedItem] = Field(default_factory=list)
    summary: str = ""
    processing_notes: str | None = None

    @classmethod
    def failed(cls) -> ExtractionResult:
        """Result used when extraction for an email did not succeed."""
        return cls(items=[], summary="failed")


def parse_extraction_payload(payload: dict[str, Any]) -> tuple[ExtractionResult, list[str]]:
    """Validate a decoded LLM response.

    Args:
        payload: JSON object returned by the model.

    Returns:
        Tuple of (result with every valid item, descriptions of rejected items).
    """
    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        raw_items = []

    items: list[ExtractedItem] = []
    rejected: list[str] = []
    for index, raw in enumerate(raw_items):
        try:
            items.append(_item_adapter.validate_python(raw))
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            rejected.append(f"item[{index}] {location}: {first['msg']}")

    summary = payload.get("summary")
    notes = payload.get("processingNotes", payload.get("processing_notes"))
    result = ExtractionResult(
        items=items,
        summary=summary if isinstance(summary, str) else "",
        processing_notes=notes if isinstance(notes, str) else None,
    )
    return result, rejected
