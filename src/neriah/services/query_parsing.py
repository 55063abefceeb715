"""Parse free-text chat questions into item and spending filters.

Everything here is pure and takes ``now`` explicitly. Dates are interpreted
in the timezone of ``now``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from neriah.schemas.chat import GroupBy, ItemKind

STOPWORDS = frozenset(
    {
        "the", "and", "for", "with", "show", "find", "get", "list", "about",
        "please", "recent", "latest", "any", "all", "what", "which", "are",
        "receipts", "receipt", "invoices", "invoice", "tasks", "task",
        "meetings", "meeting", "items", "item",
        "many", "much", "how", "have", "received", "days", "past", "last",
        "this", "week", "month", "today", "yesterday", "since", "between", "from",
        "not", "without", "exclude", "except",
        "urgent", "high", "medium", "low", "priority",
    }
)  # fmt: skip

# Words that end a vendor or negation phrase.
PHRASE_BOUNDARIES = frozenset(
    {
        "last", "past", "this", "since", "between", "from", "to", "in", "on",
        "during", "for", "today", "yesterday", "not", "without", "except",
        "exclude", "and", "or",
    }
)  # fmt: skip

RECEIPT_CATEGORY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "software": ("software", "saas", "subscription"),
    "travel": ("travel", "flight", "hotel", "uber", "lyft"),
    "medical": ("medical", "health", "pharmacy"),
    "office": ("office", "stationery", "supplies"),
    "meals": ("meals", "restaurant", "dinner", "lunch"),
    "utilities": ("utilities", "internet", "phone", "electric"),
    "other": ("other",),
}

MONTHS: dict[str, int] = {
    "jan": 1, "january": 1, "feb": 2, "february": 2, "mar": 3, "march": 3,
    "apr": 4, "april": 4, "may": 5, "jun": 6, "june": 6, "jul": 7, "july": 7,
    "aug": 8, "august": 8, "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10, "nov": 11, "november": 11, "dec": 12, "december": 12,
}  # fmt: skip

PRIORITIES = ("urgent", "high", "medium", "low")

_NON_WORD = re.compile(r"[^a-z0-9\s]")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})(?:/(\d{2,4}))?$")
_RELATIVE_DAYS = re.compile(r"(?:last|past)\s+(\d{1,3})\s+days")
_BETWEEN = re.compile(r"between\s+([a-z0-9/-]+)\s+and\s+([a-z0-9/-]+)")
_FROM_TO = re.compile(r"from\s+([a-z0-9/-]+)\s+to\s+([a-z0-9/-]+)")
_SINCE = re.compile(r"since\s+([a-z0-9/-]+)")
_NEGATION = re.compile(r"\b(?:not|without|exclude|except)\s+(?:from\s+)?([a-z0-9&.\- ]{2,40})")
_NEGATED_PREFIX = re.compile(r"\b(?:not|without|exclude|except)\s+$", re.IGNORECASE)
_VENDOR = re.compile(r"\b(?:from|at|paid to|vendor)\s+([a-z0-9&.\- ]+)", re.IGNORECASE)


@dataclass(frozen=True)
class DateRange:
    """Inclusive datetime window."""

    start: datetime
    end: datetime


@dataclass
class ItemQuery:
    """Filters for searching pending items."""

    kind: ItemKind | None = None
    priority: str | None = None
    date_range: DateRange | None = None
    keywords: list[str] = field(default_factory=list)
    negations: list[str] = field(default_factory=list)


@dataclass
class SpendingQuery:
    """Filters for totalling pending receipts."""

    date_range: DateRange
    receipt_category: str | None = None
    vendor: str | None = None
    negations: list[str] = field(default_factory=list)
    group_by: GroupBy | None = None


def tokenize(text: str) -> list[str]:
    """Lowercase and split on anything that is not a letter or digit."""
    return _NON_WORD.sub(" ", text.lower()).split()


def _start_of_day(day: date, now: datetime) -> datetime:
    return datetime.combine(day, time.min, tzinfo=now.tzinfo)


def _end_of_day(day: date, now: datetime) -> datetime:
    return datetime.combine(day, time.max, tzinfo=now.tzinfo)


def parse_date_token(token: str, today: date) -> date | None:
    """Parse ``YYYY-MM-DD`` or ``M/D[/YY[YY]]``; the year defaults to ``today``'s."""
    try:
        iso = _ISO_DATE.match(token)
        if iso:
            return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
        slash = _SLASH_DATE.match(token)
        if slash:
            month, day, year = slash.groups()
            if year is None:
                full_year = today.year
            else:
                full_year = int(f"20{year}" if len(year) == 2 else year)
            return date(full_year, int(month), int(day))
    except ValueError:
        return None
    return None


def _month_day(tokens: list[str], today: date) -> date | None:
    month = MONTHS.get(tokens[0])
    if month is None or not tokens[1].isdigit():
        return None
    try:
        return date(today.year, month, int(tokens[1]))
    except ValueError:
        return None


def _named_range(lowered: str, now: datetime) -> DateRange | None:
    today = now.date()
    # Weeks start on Sunday.
    days_since_sunday = (today.weekday() + 1) % 7
    if "this week" in lowered:
        return DateRange(_start_of_day(today - timedelta(days=days_since_sunday), now), now)
    if "last week" in lowered:
        last_saturday = today - timedelta(days=days_since_sunday + 1)
        return DateRange(
            _start_of_day(last_saturday - timedelta(days=6), now),
            _end_of_day(last_saturday, now),
        )
    if "this month" in lowered:
        return DateRange(_start_of_day(today.replace(day=1), now), now)
    if "last month" in lowered:
        last_of_previous = today.replace(day=1) - timedelta(days=1)
        return DateRange(
            _start_of_day(last_of_previous.replace(day=1), now),
            _end_of_day(last_of_previous, now),
        )
    if "today" in lowered:
        return DateRange(_start_of_day(today, now), now)
    if "yesterday" in lowered:
        yesterday = today - timedelta(days=1)
        return DateRange(_start_of_day(yesterday, now), _end_of_day(yesterday, now))
    return None


def extract_date_range(text: str, now: datetime) -> DateRange | None:
    """Find a date window in the text.

    Recognizes, in order: this/last week, this/last month, today, yesterday,
    "last N days", "between A and B", "from A to B", "since A" and a bare
    "<month> <day>" (which runs until now). Explicit end dates include the
    whole day.
    """
    lowered = text.lower()
    today = now.date()

    named = _named_range(lowered, now)
    if named is not None:
        return named

    relative = _RELATIVE_DAYS.search(lowered)
    if relative:
        return DateRange(now - timedelta(days=int(relative.group(1))), now)

    for pattern in (_BETWEEN, _FROM_TO):
        match = pattern.search(lowered)
        if match:
            start = parse_date_token(match.group(1), today)
            end = parse_date_token(match.group(2), today)
            if start and end:
                return DateRange(_start_of_day(start, now), _end_of_day(end, now))

    since = _SINCE.search(lowered)
    if since:
        start = parse_date_token(since.group(1), today)
        if start:
            return DateRange(_start_of_day(start, now), now)

    tokens = tokenize(lowered)
    for first, second in zip(tokens, tokens[1:], strict=False):
        day = _month_day([first, second], today)
        if day:
            return DateRange(_start_of_day(day, now), now)

    return None


def _leading_phrase(raw: str) -> str | None:
    words: list[str] = []
    for word in raw.strip().split():
        if word.lower() in PHRASE_BOUNDARIES or len(words) == 3:
            break
        words.append(word)
    return " ".join(words) or None


def extract_negations(text: str) -> list[str]:
    """Phrases after not/without/exclude/except, at most three words each."""
    negations = []
    for match in _NEGATION.finditer(text.lower()):
        phrase = _leading_phrase(match.group(1))
        if phrase:
            negations.append(phrase)
    return negations


def extract_keywords(text: str, negations: list[str]) -> list[str]:
    """Up to five search words, skipping stopwords, dates and negated words."""
    negated = {token for phrase in negations for token in tokenize(phrase)}
    keywords = [
        word
        for word in tokenize(text)
        if len(word) > 2
        and not word.isdigit()
        and word not in STOPWORDS
        and word not in MONTHS
        and word not in negated
    ]
    return keywords[:5]


def extract_receipt_category(text: str) -> str | None:
    """First receipt category whose keywords appear in the text."""
    lowered = text.lower()
    for category, keywords in RECEIPT_CATEGORY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return category
    return None


def extract_vendor(text: str) -> str | None:
    """Vendor named after from/at/paid to/vendor; dates and negated names are not vendors."""
    for match in _VENDOR.finditer(text):
        if _NEGATED_PREFIX.search(text[: match.start()]):
            continue
        phrase = _leading_phrase(match.group(1))
        if phrase is None or phrase[0].isdigit() or phrase.lower().split()[0] in MONTHS:
            continue
        return phrase
    return None


def extract_priority(text: str) -> str | None:
    """Priority word mentioned in the text, most urgent first."""
    words = set(tokenize(text))
    return next((priority for priority in PRIORITIES if priority in words), None)


def extract_item_kind(text: str) -> ItemKind | None:
    """Item type the question is about, if any."""
    lowered = text.lower()
    if re.search(r"receipt|invoice", lowered):
        return "receipt"
    if re.search(r"meeting|schedule|calendar", lowered):
        return "meeting"
    if re.search(r"task|follow up|follow-up|deadline|reply", lowered):
        return "task"
    return None


def parse_item_query(text: str, now: datetime) -> ItemQuery:
    """Build item search filters from a chat question."""
    negations = extract_negations(text)
    return ItemQuery(
        kind=extract_item_kind(text),
        priority=extract_priority(text),
        date_range=extract_date_range(text, now),
        keywords=extract_keywords(text, negations),
        negations=negations,
    )


def parse_spending_query(
    text: str,
    now: datetime,
    group_by: GroupBy | None = None,
    default_days: int = 30,
) -> SpendingQuery:
    """Build spending filters; without a date the last ``default_days`` are used."""
    date_range = extract_date_range(text, now) or DateRange(
        now - timedelta(days=default_days), now
    )
    return SpendingQuery(
        date_range=date_range,
        receipt_category=extract_receipt_category(text),
        vendor=extract_vendor(text),
        negations=extract_negations(text),
        group_by=group_by,
    )
