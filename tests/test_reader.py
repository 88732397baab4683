"""Tests for the .msg reader."""

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from msg_to_pdf.exceptions import MessageDecodeError
from msg_to_pdf.reader import read_message, to_message


def _attachment(**fields):
    defaults = {
        "longFilename": None,
        "shortFilename": None,
        "data": None,
        "cid": None,
        "mimetype": None,
    }
    defaults.update(fields)
    return SimpleNamespace(**defaults)


def _raw_message(**fields):
    defaults = {
        "subject": "Hello",
        "sender": "Alice Example <alice@example.com>",
        "recipients": [
            SimpleNamespace(name="Bob", email="bob@example.com", type=1),
            SimpleNamespace(name="", email="carol@example.com", type=2),
            SimpleNamespace(name="Eve", email="eve@example.com", type=3),
        ],
        "to": None,
        "cc": None,
        "date": datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        "htmlBody": None,
        "body": "Plain body",
        "attachments": [],
    }
    defaults.update(fields)
    return SimpleNamespace(**defaults)


def test_to_message_maps_headers():
    message = to_message(_raw_message())
    assert message.subject == "Hello"
    assert message.sender_name == "Alice Example"
    assert message.sender_address == "alice@example.com"
    assert [r.label for r in message.recipients] == ["Bob"]
    assert [r.label for r in message.cc] == ["carol@example.com"]
    assert [r.label for r in message.bcc] == ["Eve"]
    assert message.date == "Mon, 01 Jan 2024 12:00:00 +0000"
    assert message.text_body == "Plain body"
    assert message.html_body is None


def test_sender_without_brackets():
    assert to_message(_raw_message(sender="bob@example.com")).sender_address == "bob@example.com"
    only_name = to_message(_raw_message(sender="Bob Builder"))
    assert only_name.sender_name == "Bob Builder"
    assert only_name.sender_address == ""


def test_recipients_fall_back_to_headers():
    raw = _raw_message(
        recipients=[],
        to="Bob <bob@example.com>, carol@example.com",
        cc="Dave <dave@example.com>",
    )
    message = to_message(raw)
    assert [r.label for r in message.recipients] == ["Bob", "carol@example.com"]
    assert [r.address for r in message.cc] == ["dave@example.com"]


def test_missing_fields_degrade_to_empty():
    raw = _raw_message(subject=None, sender=None, date=None, body=None, recipients=None)
    message = to_message(raw)
    assert message.subject is None
    assert message.sender_label == ""
    assert message.date == ""
    assert message.text_body is None
    assert message.recipients == []


def test_html_body_uses_declared_charset():
    html = '<html><head><meta charset="windows-1252"></head><body>caf\xe9</body></html>'
    message = to_message(_raw_message(htmlBody=html.encode("cp1252")))
    assert "café" in message.html_body


def test_html_body_defaults_to_utf8():
    message = to_message(_raw_message(htmlBody="<p>naïve</p>".encode("utf-8")))
    assert message.html_body == "<p>naïve</p>"


class _BrokenProperty:
    @property
    def subject(self):
        raise ValueError("corrupt stream")


def test_broken_property_is_tolerated():
    raw = _BrokenProperty()
    message = to_message(raw)
    assert message.subject is None
    assert message.attachments == []


def test_attachments_are_mapped():
    raw = _raw_message(
        attachments=[
            _attachment(longFilename="photo.png", data=b"png", cid="<p1>", mimetype="image/png"),
            _attachment(shortFilename="SHORT~1.TXT", data=b"txt"),
            _attachment(longFilename="forwarded.msg", data=object()),
        ]
    )
    attachments = to_message(raw).attachments
    assert attachments[0].file_name == "photo.png"
    assert attachments[0].content == b"png"
    assert attachments[0].content_id == "<p1>"
    assert attachments[0].mime_type == "image/png"
    assert attachments[1].file_name == "SHORT~1.TXT"
    assert attachments[2].file_name == "forwarded.msg"
    assert attachments[2].content is None


def test_read_message_closes_file():
    raw = _raw_message()
    raw.close = MagicMock()
    with patch("msg_to_pdf.reader.extract_msg.openMsg", return_value=raw) as open_msg:
        message = read_message(Path("/tmp/mail.msg"))
    open_msg.assert_called_once_with("/tmp/mail.msg")
    raw.close.assert_called_once()
    assert message.subject == "Hello"


def test_read_message_wraps_decode_errors():
    with patch("msg_to_pdf.reader.extract_msg.openMsg", side_effect=OSError("not an OLE file")):
        with pytest.raises(MessageDecodeError, match="mail.msg"):
            read_message(Path("/tmp/mail.msg"))
