"""Tests for Gmail message normalization."""

from __future__ import annotations

import base64
from datetime import UTC, datetime
from typing import Any

from neriah.integrations.gmail.parser import (
    EPOCH,
    decode_body,
    extract_attachments,
    extract_body,
    get_header,
    html_to_text,
    parse_internal_date,
    parse_message,
    split_sender,
)


def b64(text: str) -> str:
    """Encode like Gmail: URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")


def _raw_message(payload: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {
        "id": "msg-1",
        "threadId": "thread-1",
        "snippet": "Quick preview",
        "internalDate": "1700000000000",
        "payload": payload,
        **extra,
    }


class TestDecodeBody:
    """Tests for decode_body."""

    def test_decodes_unpadded_urlsafe(self) -> None:
        """Test decoding without padding."""
        assert decode_body(b64("Hello? World>>")) == "Hello? World>>"

    def test_empty_and_none(self) -> None:
        """Test empty input yields empty text."""
        assert decode_body(None) == ""
        assert decode_body("") == ""

    def test_invalid_returns_empty(self) -> None:
        """Test undecodable data yields empty text."""
        assert decode_body("!!!") == ""


class TestGetHeader:
    """Tests for get_header."""

    def test_case_insensitive(self) -> None:
        """Test header names match regardless of case."""
        headers = [{"name": "SUBJECT", "value": "Invoice"}]

        assert get_header(headers, "Subject") == "Invoice"

    def test_missing(self) -> None:
        """Test missing header yields empty string."""
        assert get_header([], "From") == ""
        assert get_header(None, "From") == ""


class TestExtractBody:
    """Tests for extract_body."""

    def test_single_part(self) -> None:
        """Test single-part bodies come from payload.body."""
        payload = {"mimeType": "text/plain", "body": {"data": b64("Plain body")}}

        assert extract_body(payload) == "Plain body"

    def test_prefers_plain_over_html(self) -> None:
        """Test text/plain wins over text/html."""
        payload = {
            "mimeType": "multipart/alternative",
            "parts": [
                {"mimeType": "text/html", "body": {"data": b64("<p>Html</p>")}},
                {"mimeType": "text/plain", "body": {"data": b64("Plain")}},
            ],
        }

        assert extract_body(payload) == "Plain"

    def test_falls_back_to_html(self) -> None:
        """Test HTML is used when there is no plain part."""
        payload = {
            "mimeType": "multipart/alternative",
            "parts": [{"mimeType": "text/html", "body": {"data": b64("<b>Hi</b>")}}],
        }

        assert extract_body(payload) == "Hi"

    def test_nested_multipart(self) -> None:
        """Test text inside nested multiparts is found."""
        payload = {
            "mimeType": "multipart/mixed",
            "parts": [
                {
                    "mimeType": "multipart/alternative",
                    "parts": [{"mimeType": "text/plain", "body": {"data": b64("Nested")}}],
                },
                {
                    "mimeType": "application/pdf",
                    "filename": "a.pdf",
                    "body": {"attachmentId": "att-1", "size": 10},
                },
            ],
        }

        assert extract_body(payload) == "Nested"

    def test_snippet_fallback(self) -> None:
        """Test the snippet is used when nothing decodes."""
        payload = {"mimeType": "multipart/mixed", "parts": [{"mimeType": "image/png"}]}

        assert extract_body(payload, snippet="snip") == "snip"

    def test_single_part_html(self) -> None:
        """Test a single-part HTML message is reduced to text."""
        html = "<html><head><title>T</title></head><body><p>Pay   by</p> Friday</body></html>"
        payload = {"mimeType": "text/html", "body": {"data": b64(html)}}

        assert extract_body(payload) == "Pay by Friday"


class TestHtmlToText:
    """Tests for html_to_text."""

    def test_drops_scripts_and_styles(self) -> None:
        """Test script and style contents never reach the text."""
        html = "<style>p {color: red}</style><p>Invoice</p><script>track()</script>"

        assert html_to_text(html) == "Invoice"

    def test_separates_block_text(self) -> None:
        """Test adjacent elements are separated by a single space."""
        assert html_to_text("<div>Order</div><div>\n\n#42</div>") == "Order #42"


class TestExtractAttachments:
    """Tests for extract_attachments."""

    def test_top_level_and_one_nested_level(self) -> None:
        """Test attachments are found at top level and one level down."""
        payload = {
            "parts": [
                {"mimeType": "text/plain", "body": {"data": b64("x")}},
                {
                    "mimeType": "application/pdf",
                    "filename": "invoice.pdf",
                    "body": {"attachmentId": "att-1", "size": 2048},
                },
                {
                    "mimeType": "multipart/mixed",
                    "parts": [
                        {
                            "mimeType": "image/png",
                            "filename": "logo.png",
                            "body": {"attachmentId": "att-2", "size": "12"},
                        }
                    ],
                },
            ]
        }

        attachments = extract_attachments(payload)

        assert [a.filename for a in attachments] == ["invoice.pdf", "logo.png"]
        assert attachments[0].size == 2048
        assert attachments[1].attachment_id == "att-2"
        assert attachments[1].size == 12

    def test_no_parts(self) -> None:
        """Test single-part messages have no attachments."""
        assert extract_attachments({"body": {"data": b64("x")}}) == []


class TestSplitSender:
    """Tests for split_sender."""

    def test_name_and_address(self) -> None:
        """Test quoted display name with angle address."""
        assert split_sender('"Jane Doe" <jane@example.com>') == ("Jane Doe", "jane@example.com")

    def test_bare_address(self) -> None:
        """Test a bare address is used as both name and email."""
        assert split_sender("billing@aws.com") == ("billing@aws.com", "billing@aws.com")

    def test_apostrophe_kept(self) -> None:
        """Test apostrophes in names survive."""
        assert split_sender("Pat O'Brien <pat@example.com>") == ("Pat O'Brien", "pat@example.com")


class TestParseInternalDate:
    """Tests for parse_internal_date."""

    def test_milliseconds(self) -> None:
        """Test millisecond timestamps convert to aware datetimes."""
        expected = datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
        assert parse_internal_date("1700000000000") == expected

    def test_invalid(self) -> None:
        """Test invalid values fall back to the epoch."""
        assert parse_internal_date(None) == EPOCH
        assert parse_internal_date("soon") == EPOCH


class TestParseMessage:
    """Tests for parse_message."""

    def test_full_message(self) -> None:
        """Test every field is populated from a full message."""
        raw = _raw_message(
            {
                "mimeType": "multipart/mixed",
                "headers": [
                    {"name": "From", "value": "AWS Billing <billing@aws.com>"},
                    {"name": "To", "value": "me@example.com"},
                    {"name": "Subject", "value": "Your invoice"},
                    {"name": "Date", "value": "Tue, 14 Nov 2023 22:13:20 +0000"},
                ],
                "parts": [
                    {"mimeType": "text/plain", "body": {"data": b64("Total $184.29")}},
                    {
                        "mimeType": "application/pdf",
                        "filename": "INV-9.pdf",
                        "body": {"attachmentId": "att-9", "size": 100},
                    },
                ],
            }
        )

        email = parse_message(raw)

        assert email.message_id == "msg-1"
        assert email.thread_id == "thread-1"
        assert email.from_ == "AWS Billing <billing@aws.com>"
        assert email.subject == "Your invoice"
        assert email.body == "Total $184.29"
        assert email.has_attachments
        assert email.attachment_ids == ["att-9"]
        assert email.internal_date.year == 2023

    def test_missing_payload(self) -> None:
        """Test a message without payload normalizes to empty fields."""
        email = parse_message({"id": "m", "snippet": "only snippet"})

        assert email.subject == ""
        assert email.from_ == ""
        assert email.body == "only snippet"
        assert email.attachments == []
        assert email.internal_date == EPOCH
