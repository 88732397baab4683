"""Utility helpers shared across modules."""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Optional

# Extension -> MIME type for the formats that get embedded as images.
_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
}


def guess_mime_type(file_name: Optional[str], default: str = "application/octet-stream") -> str:
    """Infer a MIME type from the file extension."""
    name = file_name or ""
    if "." not in name:
        return default
    extension = name.rsplit(".", 1)[1].lower()
    return _MIME_TYPES.get(extension, default)


def strip_content_id(content_id: str) -> str:
    """Drop the angle brackets Outlook wraps around content ids."""
    value = content_id.strip()
    if value.startswith("<"):
        value = value[1:]
    if value.endswith(">"):
        value = value[:-1]
    return value


def data_uri(content: bytes, mime_type: str) -> str:
    """Encode bytes as a base64 data URI."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def output_path_for(input_path: Path, extension: str = ".pdf") -> Path:
    """Place the output beside the input, swapping the extension."""
    return input_path.with_suffix(extension)
