"""Build the printable HTML document for a decoded message.

The body is handled as a parsed tree: ``cid:`` references only touch ``<img src>``
attributes and ``[name.png]`` placeholders only touch text nodes, so markup coming
from the message is never rewritten by string substitution.
"""

from __future__ import annotations

import html
import logging
import re
from typing import Iterable, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from .classifier import is_image, is_pdf
from .models import AssembledDocument, Attachment, Message, PdfAttachment, Recipient
from .utils import data_uri, guess_mime_type, strip_content_id

logger = logging.getLogger(__name__)

NO_SUBJECT = "(No Subject)"
UNNAMED_ATTACHMENT = "Unnamed attachment"
SECTION_SEPARATOR = "* * *"

PLACEHOLDER_PATTERN = re.compile(
    r"\[([^\]]+\.(?:png|jpg|jpeg|gif|bmp|tif|tiff))\]", re.IGNORECASE
)

_SKIPPED_TEXT_PARENTS = {"script", "style"}

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="UTF-8">
<style>
body { font-family: Arial, sans-serif; padding: 20px; max-width: 800px; margin: 0 auto; }
img { max-width: 100%; height: auto; }
.message-header { margin-bottom: 20px; border-bottom: 2px solid #ccc; padding-bottom: 10px; }
.message-header h2 { margin: 0 0 10px 0; }
.message-header p { margin: 5px 0; }
.attachments { margin-top: 40px; padding-top: 20px; }
.attachments .separator { text-align: center; font-size: 20px; color: #666; margin-bottom: 15px; }
.attachments h3 { margin: 10px 0; }
.gallery-item { margin: 20px 0; }
.gallery-item img { display: block; }
.gallery-item .caption { font-weight: bold; margin-top: 5px; text-align: center; color: #666; }
.files { margin-top: 20px; }
.files h4 { margin: 10px 0; }
.files ul { margin: 10px 0; padding-left: 30px; }
.files li { margin: 5px 0; }
</style>
</head>
<body></body>
</html>
"""


class _InlineState:
    """Lookups plus bookkeeping of which attachments are already shown."""

    def __init__(self, attachments: list[Attachment]) -> None:
        self.attachments = attachments
        self.by_content_id: dict[str, int] = {}
        self.by_file_name: dict[str, int] = {}
        self.references: set[str] = set()
        self.placed: set[int] = set()

        for index, attachment in enumerate(attachments):
            # PDFs are merged as pages and never take part in image handling.
            if is_pdf(attachment.file_name):
                continue
            if attachment.content_id:
                self.by_content_id[strip_content_id(attachment.content_id)] = index
            if attachment.file_name:
                self.by_file_name[attachment.file_name] = index

    def find_by_file_name(self, file_name: str) -> Optional[int]:
        index = self.by_file_name.get(file_name)
        if index is not None:
            return index
        lowered = file_name.lower()
        for key, candidate in self.by_file_name.items():
            if key.lower() == lowered:
                return candidate
        return None

    def mark(self, index: int, *identifiers: Optional[str]) -> None:
        self.placed.add(index)
        self.references.update(identifier for identifier in identifiers if identifier)

    def is_referenced(self, attachment: Attachment) -> bool:
        if attachment.file_name and attachment.file_name in self.references:
            return True
        if attachment.content_id:
            return strip_content_id(attachment.content_id) in self.references
        return False


class ContentAssembler:
    """Merge headers, body and attachments of a message into one HTML document."""

    def assemble(self, message: Message) -> AssembledDocument:
        # Attachments with neither a name nor content have nothing to show.
        attachments = [a for a in message.attachments if a.file_name or a.content]
        state = _InlineState(attachments)

        body = self._parse_body(message)
        self._inline_cid_images(body, state)
        placeholder_images = self._remove_placeholders(body, state)
        gallery = self._collect_gallery(placeholder_images, state)
        files = self._collect_files(state)
        pdf_attachments = [
            PdfAttachment(file_name=a.file_name, content=a.content)
            for a in attachments
            if a.content and is_pdf(a.file_name)
        ]

        soup = BeautifulSoup(DOCUMENT_TEMPLATE, "html.parser")
        soup.body.append(self._header(soup, message))
        container = soup.new_tag("div", attrs={"class": "body-content"})
        for node in list(body.contents):
            container.append(node.extract())
        soup.body.append(container)
        if gallery or files:
            soup.body.append(self._attachments_section(soup, gallery, files))

        logger.debug(
            "Assembled message '%s': %d gallery image(s), %d listed file(s), %d PDF(s)",
            message.subject,
            len(gallery),
            len(files),
            len(pdf_attachments),
        )
        return AssembledDocument(
            html=str(soup),
            pdf_attachments=pdf_attachments,
            gallery=[a.file_name for a in gallery],
            listed_files=files,
        )

    @staticmethod
    def _parse_body(message: Message) -> BeautifulSoup:
        if message.html_body:
            markup = message.html_body
        elif message.text_body:
            markup = "<br>\n".join(
                html.escape(line, quote=False) for line in message.text_body.splitlines()
            )
        else:
            markup = ""

        parsed = BeautifulSoup(markup, "html.parser")
        if parsed.body is None:
            return parsed

        # A full HTML document: keep its styles and the children of <body>.
        fragment = BeautifulSoup("", "html.parser")
        for style in parsed.find_all("style"):
            fragment.append(style.extract())
        for node in list(parsed.body.contents):
            fragment.append(node.extract())
        return fragment

    @staticmethod
    def _inline_cid_images(body: BeautifulSoup, state: _InlineState) -> None:
        for img in body.find_all("img", src=True):
            source = img["src"].strip()
            if not source.lower().startswith("cid:"):
                continue
            content_id = strip_content_id(source[4:])
            index = state.by_content_id.get(content_id)
            if index is None or not state.attachments[index].content:
                logger.debug("Leaving unresolved inline image reference %s", source)
                continue
            attachment = state.attachments[index]
            img["src"] = data_uri(attachment.content, _image_mime_type(attachment))
            state.mark(index, content_id)

    @staticmethod
    def _remove_placeholders(body: BeautifulSoup, state: _InlineState) -> list[int]:
        found: list[int] = []

        def _resolve(match: re.Match) -> str:
            index = state.find_by_file_name(match.group(1))
            if index is None or not state.attachments[index].content:
                logger.debug("Leaving unresolved placeholder %s", match.group(0))
                return match.group(0)
            if index not in state.placed:
                found.append(index)
            state.mark(index, state.attachments[index].file_name)
            return ""

        for text in body.find_all(string=PLACEHOLDER_PATTERN):
            if isinstance(text, PreformattedString):
                continue
            if text.parent is not None and text.parent.name in _SKIPPED_TEXT_PARENTS:
                continue
            original = str(text)
            updated = PLACEHOLDER_PATTERN.sub(_resolve, original)
            if updated != original:
                text.replace_with(NavigableString(updated))
        return found

    @staticmethod
    def _collect_gallery(placeholder_images: list[int], state: _InlineState) -> list[Attachment]:
        indices = list(placeholder_images)
        for index, attachment in enumerate(state.attachments):
            if index in state.placed or not attachment.content:
                continue
            if is_image(attachment.file_name):
                indices.append(index)
                state.mark(index, attachment.file_name)
        return [state.attachments[index] for index in indices]

    @staticmethod
    def _collect_files(state: _InlineState) -> list[str]:
        names: list[str] = []
        for index, attachment in enumerate(state.attachments):
            if index in state.placed or state.is_referenced(attachment):
                continue
            if is_pdf(attachment.file_name):
                continue
            names.append(attachment.file_name or UNNAMED_ATTACHMENT)
        return names

    def _header(self, soup: BeautifulSoup, message: Message) -> Tag:
        header = soup.new_tag("div", attrs={"class": "message-header"})
        title = soup.new_tag("h2")
        title.string = message.subject or NO_SUBJECT
        header.append(title)
        header.append(_header_field(soup, "From", message.sender_label))
        header.append(_header_field(soup, "To", _join_recipients(message.recipients)))
        if message.cc:
            header.append(_header_field(soup, "Cc", _join_recipients(message.cc)))
        if message.bcc:
            header.append(_header_field(soup, "Bcc", _join_recipients(message.bcc)))
        header.append(_header_field(soup, "Date", message.date))
        return header

    def _attachments_section(
        self, soup: BeautifulSoup, gallery: list[Attachment], files: list[str]
    ) -> Tag:
        section = soup.new_tag("div", attrs={"class": "attachments"})
        separator = soup.new_tag("div", attrs={"class": "separator"})
        separator.string = SECTION_SEPARATOR
        section.append(separator)
        heading = soup.new_tag("h3")
        heading.string = "Attachments:"
        section.append(heading)

        if gallery:
            images = soup.new_tag("div", attrs={"class": "gallery"})
            for attachment in gallery:
                item = soup.new_tag("div", attrs={"class": "gallery-item"})
                item.append(
                    soup.new_tag(
                        "img",
                        attrs={"src": data_uri(attachment.content, _image_mime_type(attachment))},
                    )
                )
                caption = soup.new_tag("div", attrs={"class": "caption"})
                caption.string = f"[{attachment.file_name}]"
                item.append(caption)
                images.append(item)
            section.append(images)

        if files:
            listing = soup.new_tag("div", attrs={"class": "files"})
            sub_heading = soup.new_tag("h4")
            sub_heading.string = "Files:"
            listing.append(sub_heading)
            entries = soup.new_tag("ul")
            for name in files:
                entry = soup.new_tag("li")
                entry.string = name
                entries.append(entry)
            listing.append(entries)
            section.append(listing)

        return section


def _header_field(soup: BeautifulSoup, label: str, value: str) -> Tag:
    paragraph = soup.new_tag("p")
    strong = soup.new_tag("strong")
    strong.string = f"{label}:"
    paragraph.append(strong)
    paragraph.append(NavigableString(f" {value}"))
    return paragraph


def _join_recipients(recipients: Iterable[Recipient]) -> str:
    return ", ".join(recipient.label for recipient in recipients)


def _image_mime_type(attachment: Attachment) -> str:
    declared = (attachment.mime_type or "").lower()
    if declared.startswith("image/"):
        return declared
    return guess_mime_type(attachment.file_name, default="image/png")

