"""Configuration management for the .msg to PDF converter."""

from __future__ import annotations

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env early so BaseSettings can pick values up seamlessly.
load_dotenv()

DEFAULT_LABEL_FONT_FAMILY = (
    '"Noto Sans CJK SC", "Noto Sans SC", "Microsoft YaHei", Arial, sans-serif'
)

_DEFAULTS = {
    "log_level": "INFO",
    "page_size": "A4",
    "page_margin": "20mm",
    "label_font_family": DEFAULT_LABEL_FONT_FAMILY,
    "input_extension": ".msg",
    "output_extension": ".pdf",
}


class Settings(BaseSettings):
    """App configuration derived from environment variables."""

    log_level: str = Field(_DEFAULTS["log_level"], alias="LOG_LEVEL")
    page_size: str = Field(_DEFAULTS["page_size"], alias="PDF_PAGE_SIZE")
    page_margin: str = Field(_DEFAULTS["page_margin"], alias="PDF_PAGE_MARGIN")
    label_font_family: str = Field(
        _DEFAULTS["label_font_family"], alias="PDF_LABEL_FONT_FAMILY"
    )
    input_extension: str = Field(_DEFAULTS["input_extension"], alias="MSG_INPUT_EXTENSION")
    output_extension: str = Field(
        _DEFAULTS["output_extension"], alias="PDF_OUTPUT_EXTENSION"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator(
        "log_level",
        "page_size",
        "page_margin",
        "label_font_family",
        "input_extension",
        "output_extension",
        mode="before",
    )
    @classmethod
    def _blank_to_default(cls, value, info):
        if value is None or (isinstance(value, str) and value.strip() == ""):
            return _DEFAULTS[info.field_name]
        return value.strip() if isinstance(value, str) else value

    @field_validator("input_extension", "output_extension")
    @classmethod
    def _ensure_leading_dot(cls, value: str) -> str:
        return value if value.startswith(".") else f".{value}"

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()
