"""Per-file pipeline: decode, assemble, render, merge, write."""

from __future__ import annotations

import logging
from pathlib import Path

from .assembler import ContentAssembler
from .config import Settings
from .merger import AttachmentMerger
from .reader import read_message
from .renderer import DocumentRenderer
from .utils import output_path_for

logger = logging.getLogger(__name__)


class MessageConverter:
    """Turn one .msg file into a PDF written beside it."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.assembler = ContentAssembler()

    def output_path(self, msg_path: Path) -> Path:
        return output_path_for(msg_path, self.settings.output_extension)

    def convert(self, msg_path: Path) -> Path:
        """Convert ``msg_path`` and return the path of the written PDF.

        A fresh renderer is created for every file and released before returning,
        also when rendering or merging raises.
        """
        output_path = self.output_path(msg_path)
        logger.info("%s -> %s", msg_path, output_path)

        message = read_message(msg_path)
        document = self.assembler.assemble(message)

        with DocumentRenderer(
            page_size=self.settings.page_size,
            page_margin=self.settings.page_margin,
        ) as renderer:
            primary = renderer.render(document.html)
            merger = AttachmentMerger(renderer, self.settings.label_font_family)
            pdf_bytes = merger.merge(primary, document.pdf_attachments)

        output_path.write_bytes(pdf_bytes)
        return output_path
