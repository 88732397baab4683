"""Decide how an attachment is presented in the output document."""

from __future__ import annotations

from enum import Enum
from typing import Optional

PDF_EXTENSIONS = (".pdf",)
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tif", ".tiff")


class AttachmentKind(str, Enum):
    PDF = "pdf"
    IMAGE = "image"
    OTHER = "other"


def classify(file_name: Optional[str]) -> AttachmentKind:
    """Classify an attachment by its file extension, ignoring case.

    PDF wins over image so a PDF never reaches the image handling.
    """
    lowered = (file_name or "").lower()
    if lowered.endswith(PDF_EXTENSIONS):
        return AttachmentKind.PDF
    if lowered.endswith(IMAGE_EXTENSIONS):
        return AttachmentKind.IMAGE
    return AttachmentKind.OTHER


def is_pdf(file_name: Optional[str]) -> bool:
    return classify(file_name) is AttachmentKind.PDF


def is_image(file_name: Optional[str]) -> bool:
    return classify(file_name) is AttachmentKind.IMAGE
