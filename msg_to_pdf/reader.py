"""Decode Outlook .msg containers into :class:`Message` records."""

from __future__ import annotations

import codecs
import logging
import re
from datetime import datetime
from email.utils import format_datetime, getaddresses, parseaddr
from pathlib import Path
from typing import Any, Iterable, Optional

import extract_msg

from .exceptions import MessageDecodeError
from .models import Attachment, Message, Recipient

logger = logging.getLogger(__name__)

# PR_RECIPIENT_TYPE values
MAPI_TO = 1
MAPI_CC = 2
MAPI_BCC = 3

_CHARSET_PATTERN = re.compile(rb"""charset\s*=\s*["']?([A-Za-z0-9_.:-]+)""", re.IGNORECASE)


def read_message(path: Path) -> Message:
    """Open a .msg file and decode the fields the assembler consumes."""
    try:
        msg = extract_msg.openMsg(str(path))
    except Exception as exc:
        raise MessageDecodeError(f"Unable to decode {path.name}: {exc}") from exc

    try:
        return to_message(msg)
    finally:
        msg.close()


def to_message(msg: Any) -> Message:
    """Map an extract_msg message object onto our own model."""
    sender_name, sender_address = _parse_sender(_first_present(msg, ["sender"]))
    recipients, cc, bcc = _split_recipients(msg)

    return Message(
        subject=_ensure_str(_first_present(msg, ["subject"])) or None,
        sender_name=sender_name,
        sender_address=sender_address,
        recipients=recipients,
        cc=cc,
        bcc=bcc,
        date=_format_date(_first_present(msg, ["date"])),
        html_body=_decode_html(_first_present(msg, ["htmlBody"])),
        text_body=_ensure_str(_first_present(msg, ["body"])) or None,
        attachments=[_to_attachment(a) for a in (_first_present(msg, ["attachments"]) or [])],
    )


def _first_present(obj: Any, names: Iterable[str]) -> Any:
    """Return the first truthy attribute from names, tolerating broken properties."""
    for name in names:
        try:
            value = getattr(obj, name)
        except AttributeError:
            continue
        except Exception as exc:
            # extract_msg decodes lazily; a corrupt stream only hurts that one field.
            logger.debug("Could not read %s from %r: %s", name, obj, exc)
            continue
        if value:
            return value
    return None


def _ensure_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _decode_html(value: Any) -> Optional[str]:
    """Decode an HTML body using the charset it declares."""
    if not value:
        return None
    if isinstance(value, str):
        return value
    raw = bytes(value)
    encoding = "utf-8"
    match = _CHARSET_PATTERN.search(raw[:4096])
    if match:
        declared = match.group(1).decode("ascii", errors="ignore")
        try:
            encoding = codecs.lookup(declared).name
        except LookupError:
            logger.debug("Unknown charset %s declared in HTML body", declared)
    return raw.decode(encoding, errors="replace")


def _parse_sender(value: Any) -> tuple[str, str]:
    text = _ensure_str(value).strip()
    if not text:
        return "", ""
    if "<" in text:
        name, address = parseaddr(text)
        return name, address
    if "@" in text:
        return "", text
    return text, ""


def _split_recipients(msg: Any) -> tuple[list[Recipient], list[Recipient], list[Recipient]]:
    to: list[Recipient] = []
    cc: list[Recipient] = []
    bcc: list[Recipient] = []

    table = _first_present(msg, ["recipients"])
    if not table:
        return (
            _parse_address_header(_first_present(msg, ["to"])),
            _parse_address_header(_first_present(msg, ["cc"])),
            [],
        )

    for entry in table:
        recipient = Recipient(
            display_name=_ensure_str(getattr(entry, "name", None)).strip(),
            address=_ensure_str(getattr(entry, "email", None)).strip(),
        )
        if not recipient.label:
            continue
        kind = _recipient_type(entry)
        if kind == MAPI_CC:
            cc.append(recipient)
        elif kind == MAPI_BCC:
            bcc.append(recipient)
        else:
            to.append(recipient)
    return to, cc, bcc


def _recipient_type(entry: Any) -> Optional[int]:
    value = getattr(entry, "type", None)
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _parse_address_header(value: Any) -> list[Recipient]:
    text = _ensure_str(value)
    if not text:
        return []
    return [
        Recipient(display_name=name, address=address)
        for name, address in getaddresses([text])
        if name or address
    ]


def _format_date(value: Any) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.strftime("%a, %d %b %Y %H:%M:%S")
        return format_datetime(value)
    return _ensure_str(value)


def _to_attachment(raw: Any) -> Attachment:
    file_name = _first_present(raw, ["longFilename", "shortFilename", "name", "displayName"])
    data = _first_present(raw, ["data"])
    # Embedded messages and OLE objects expose non-bytes data; they carry no usable content.
    content = bytes(data) if isinstance(data, (bytes, bytearray)) else None
    content_id = _first_present(raw, ["cid", "contentId"])
    mime_type = _first_present(raw, ["mimetype"])
    return Attachment(
        file_name=_ensure_str(file_name) or None,
        content=content or None,
        content_id=_ensure_str(content_id) or None,
        mime_type=_ensure_str(mime_type) or None,
    )
