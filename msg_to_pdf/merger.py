"""Append PDF attachments, each behind a label page, to the rendered message."""

from __future__ import annotations

import html
import logging
from io import BytesIO
from typing import Protocol, Sequence

from pypdf import PdfReader, PdfWriter

from .models import PdfAttachment

logger = logging.getLogger(__name__)

LABEL_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<style>
* {{ margin: 0; padding: 0; box-sizing: border-box; }}
body {{ font-family: {font_family}; padding: 40px; background: white; }}
.label {{
  font-size: 16px;
  font-weight: bold;
  padding: 20px;
  border: 2px solid #333;
  border-radius: 8px;
  background: #f5f5f5;
  word-break: break-word;
}}
</style>
</head>
<body>
<div class="label">[{file_name}]</div>
</body>
</html>
"""


class Renderer(Protocol):
    def render(self, markup: str) -> bytes: ...


def build_label_markup(file_name: str, font_family: str) -> str:
    """HTML for the page announcing an attachment; the font stack must cover CJK names."""
    return LABEL_TEMPLATE.format(
        font_family=font_family,
        file_name=html.escape(file_name, quote=False),
    )


class AttachmentMerger:
    """Copy label and attachment pages behind the primary document."""

    def __init__(self, renderer: Renderer, label_font_family: str) -> None:
        self.renderer = renderer
        self.label_font_family = label_font_family

    def merge(self, primary: bytes, attachments: Sequence[PdfAttachment]) -> bytes:
        """Return the merged PDF, or ``primary`` untouched when there is nothing to merge."""
        if not attachments:
            return primary

        writer = PdfWriter()
        for page in PdfReader(BytesIO(primary)).pages:
            writer.add_page(page)

        for attachment in attachments:
            try:
                pages = self._attachment_pages(attachment)
                staged = _stage(pages)
            except Exception as exc:
                # Skip only this attachment.
                logger.error(
                    "Failed to merge PDF attachment %s: %s", attachment.file_name, exc
                )
                continue
            for page in PdfReader(BytesIO(staged)).pages:
                writer.add_page(page)
            logger.debug(
                "Merged %s (%d page(s) incl. label)", attachment.file_name, len(pages)
            )

        buffer = BytesIO()
        writer.write(buffer)
        return buffer.getvalue()

    def _attachment_pages(self, attachment: PdfAttachment) -> list:
        # Load the attachment before rendering its label so a corrupt file adds nothing.
        attached = list(PdfReader(BytesIO(attachment.content)).pages)
        label_pdf = self.renderer.render(
            build_label_markup(attachment.file_name, self.label_font_family)
        )
        label_pages = PdfReader(BytesIO(label_pdf)).pages
        return [label_pages[0], *attached]


def _stage(pages: list) -> bytes:
    """Write label and attachment pages to a standalone PDF.

    Every object the pages reference is resolved here, so a broken attachment fails
    before anything reaches the merged document.
    """
    writer = PdfWriter()
    for page in pages:
        writer.add_page(page)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()
