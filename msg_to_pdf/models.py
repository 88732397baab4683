"""Typed containers shared across the conversion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Recipient:
    """One addressee of a message."""

    display_name: str
    address: str

    @property
    def label(self) -> str:
        return self.display_name or self.address


@dataclass(frozen=True)
class Attachment:
    """A file carried by a message."""

    file_name: Optional[str]
    content: Optional[bytes]
    content_id: Optional[str] = None
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class Message:
    """Decoded contents of one .msg file."""

    subject: Optional[str]
    sender_name: str
    sender_address: str
    recipients: list[Recipient] = field(default_factory=list)
    cc: list[Recipient] = field(default_factory=list)
    bcc: list[Recipient] = field(default_factory=list)
    date: str = ""
    html_body: Optional[str] = None
    text_body: Optional[str] = None
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def sender_label(self) -> str:
        return self.sender_name or self.sender_address


@dataclass(frozen=True)
class PdfAttachment:
    """A PDF attachment whose pages get appended to the rendered message."""

    file_name: str
    content: bytes


@dataclass
class AssembledDocument:
    """HTML ready for rendering plus the PDFs to merge behind it."""

    html: str
    pdf_attachments: list[PdfAttachment] = field(default_factory=list)
    gallery: list[str] = field(default_factory=list)
    listed_files: list[str] = field(default_factory=list)
