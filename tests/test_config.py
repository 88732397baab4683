"""Tests for settings."""

from msg_to_pdf.config import DEFAULT_LABEL_FONT_FAMILY, Settings


def test_defaults(monkeypatch):
    for name in ("LOG_LEVEL", "PDF_PAGE_SIZE", "MSG_INPUT_EXTENSION", "PDF_LABEL_FONT_FAMILY"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)
    assert settings.log_level == "INFO"
    assert settings.page_size == "A4"
    assert settings.input_extension == ".msg"
    assert settings.output_extension == ".pdf"
    assert settings.label_font_family == DEFAULT_LABEL_FONT_FAMILY


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("PDF_PAGE_SIZE", "Letter")
    monkeypatch.setenv("MSG_INPUT_EXTENSION", "MSG")
    settings = Settings(_env_file=None)
    assert settings.log_level == "DEBUG"
    assert settings.page_size == "Letter"
    assert settings.input_extension == ".MSG"


def test_blank_values_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("PDF_PAGE_SIZE", "  ")
    monkeypatch.setenv("PDF_LABEL_FONT_FAMILY", "")
    settings = Settings(_env_file=None)
    assert settings.page_size == "A4"
    assert settings.label_font_family == DEFAULT_LABEL_FONT_FAMILY
