"""Normalize raw Gmail API messages into ParsedEmail.

Gmail returns a nested MIME tree (``payload.parts``) with URL-safe base64
bodies. Everything here is total: missing or malformed fields fall back to
empty values instead of raising.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Iterator, Mapping
from datetime import UTC, datetime
from typing import Any

from bs4 import BeautifulSoup

from neriah.integrations.gmail.models import AttachmentInfo, ParsedEmail

EPOCH = datetime.fromtimestamp(0, tz=UTC)

_ANGLE_ADDRESS = re.compile(r"<([^>]*)>")
_WHITESPACE = re.compile(r"\s+")


def decode_body(data: str | None) -> str:
    """Decode a Gmail URL-safe base64 body to text.

    Args:
        data: Base64url string, padding optional.

    Returns:
        Decoded UTF-8 text (invalid bytes replaced), or "" if undecodable.
    """
    if not data:
        return ""
    padded = data + "=" * (-len(data) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError):
        return ""
    return raw.decode("utf-8", errors="replace")


def html_to_text(html_body: str) -> str:
    """Strip markup, scripts and styles from an HTML body and collapse whitespace."""
    soup = BeautifulSoup(html_body, "html.parser")

    for element in soup(["script", "style", "head", "meta", "link"]):
        element.decompose()

    return _WHITESPACE.sub(" ", soup.get_text(separator=" ")).strip()


def get_header(headers: list[Any] | None, name: str) -> str:
    """Return a header value by case-insensitive name, or ""."""
    wanted = name.lower()
    for header in headers or []:
        if isinstance(header, Mapping) and str(header.get("name", "")).lower() == wanted:
            return str(header.get("value", ""))
    return ""


def _parts(part: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    return [p for p in part.get("parts") or [] if isinstance(p, Mapping)]


def _walk(part: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    yield part
    for child in _parts(part):
        yield from _walk(child)


def _find_text(payload: Mapping[str, Any], mime_type: str) -> str:
    for part in _walk(payload):
        if part.get("mimeType") == mime_type and not part.get("filename"):
            text = decode_body((part.get("body") or {}).get("data"))
            if text:
                return text
    return ""


def extract_body(payload: Mapping[str, Any], snippet: str = "") -> str:
    """Pick the best textual body from a message payload.

    Single-part messages use ``payload.body.data``. Multipart messages
    prefer a ``text/plain`` part, then ``text/html``, searching nested
    multiparts. The snippet is the last resort.

    Args:
        payload: Gmail ``payload`` object.
        snippet: Gmail snippet used when no body part decodes.

    Returns:
        Body text.
    """
    if not _parts(payload):
        body = decode_body((payload.get("body") or {}).get("data"))
        if body and payload.get("mimeType") == "text/html":
            body = html_to_text(body)
        if body:
            return body

    body = _find_text(payload, "text/plain")
    if body:
        return body

    body = html_to_text(_find_text(payload, "text/html"))
    return body or snippet


def extract_attachments(payload: Mapping[str, Any]) -> list[AttachmentInfo]:
    """Collect attachments from top-level parts and one level of nesting.

    Args:
        payload: Gmail ``payload`` object.

    Returns:
        Attachments in part order. Parts without a filename are skipped.
    """
    attachments = []
    for part in _parts(payload):
        candidates = [part, *_parts(part)]
        for candidate in candidates:
            filename = candidate.get("filename")
            if not filename:
                continue
            body = candidate.get("body") or {}
            try:
                size = int(body.get("size") or 0)
            except (TypeError, ValueError):
                size = 0
            attachments.append(
                AttachmentInfo(
                    filename=str(filename),
                    mime_type=str(candidate.get("mimeType") or "application/octet-stream"),
                    size=size,
                    attachment_id=str(body.get("attachmentId") or ""),
                )
            )
    return attachments


def parse_internal_date(value: Any) -> datetime:
    """Convert Gmail's millisecond ``internalDate`` to an aware datetime."""
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=UTC)
    except (TypeError, ValueError, OverflowError, OSError):
        return EPOCH


def split_sender(from_header: str) -> tuple[str, str]:
    """Split a From header into display name and address.

    ``"Jane Doe" <jane@x.com>`` yields ``("Jane Doe", "jane@x.com")``. A bare
    address is used as both name and email.

    Args:
        from_header: Raw From header value.

    Returns:
        Tuple of (sender_name, sender_email).
    """
    match = _ANGLE_ADDRESS.search(from_header)
    email = match.group(1).strip() if match else from_header.strip()
    name = _ANGLE_ADDRESS.sub("", from_header).replace('"', "").strip()
    return name or email, email


def parse_message(raw: Mapping[str, Any]) -> ParsedEmail:
    """Normalize a ``messages.get(format=full)`` response.

    Args:
        raw: Raw Gmail message resource.

    Returns:
        ParsedEmail with empty-string defaults for anything missing.
    """
    payload = raw.get("payload")
    if not isinstance(payload, Mapping):
        payload = {}
    headers = payload.get("headers")
    snippet = str(raw.get("snippet") or "")

    return ParsedEmail(
        message_id=str(raw.get("id") or ""),
        thread_id=str(raw.get("threadId") or ""),
        from_=get_header(headers, "From"),
        to=get_header(headers, "To"),
        subject=get_header(headers, "Subject"),
        date=get_header(headers, "Date"),
        snippet=snippet,
        body=extract_body(payload, snippet),
        internal_date=parse_internal_date(raw.get("internalDate")),
        attachments=extract_attachments(payload),
    )
