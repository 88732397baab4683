"""Tests for the per-file conversion pipeline."""

from io import BytesIO
from unittest.mock import patch

import pytest
from pypdf import PdfReader, PdfWriter

from msg_to_pdf.config import Settings
from msg_to_pdf.converter import MessageConverter
from msg_to_pdf.exceptions import RenderError
from msg_to_pdf.models import Attachment, Message


def _pdf(pages=1):
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class FakeRenderer:
    instances = []

    def __init__(self, page_size="A4", page_margin="20mm", fail=False):
        self.page_size = page_size
        self.fail = fail
        self.rendered = []
        self.closed = False
        FakeRenderer.instances.append(self)

    def render(self, markup):
        if self.fail:
            raise RenderError("engine crashed")
        self.rendered.append(markup)
        return _pdf()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True


@pytest.fixture(autouse=True)
def _reset_instances():
    FakeRenderer.instances.clear()


def _message(attachments=()):
    return Message(
        subject="Status",
        sender_name="Alice",
        sender_address="alice@example.com",
        text_body="Body",
        attachments=list(attachments),
    )


def _settings():
    return Settings(_env_file=None)


def test_convert_writes_pdf_beside_input(tmp_path):
    msg_path = tmp_path / "status.msg"
    msg_path.write_bytes(b"")
    message = _message([Attachment(file_name="appendix.pdf", content=_pdf(pages=2))])

    with patch("msg_to_pdf.converter.read_message", return_value=message), patch(
        "msg_to_pdf.converter.DocumentRenderer", FakeRenderer
    ):
        output = MessageConverter(_settings()).convert(msg_path)

    assert output == tmp_path / "status.pdf"
    # primary page, label page, two attachment pages
    assert len(PdfReader(output).pages) == 4
    renderer = FakeRenderer.instances[0]
    assert renderer.closed
    assert "Status" in renderer.rendered[0]
    assert "[appendix.pdf]" in renderer.rendered[1]


def test_renderer_released_when_rendering_fails(tmp_path):
    msg_path = tmp_path / "status.msg"
    msg_path.write_bytes(b"")

    def failing_renderer(**kwargs):
        return FakeRenderer(fail=True, **kwargs)

    with patch("msg_to_pdf.converter.read_message", return_value=_message()), patch(
        "msg_to_pdf.converter.DocumentRenderer", side_effect=failing_renderer
    ):
        with pytest.raises(RenderError):
            MessageConverter(_settings()).convert(msg_path)

    assert FakeRenderer.instances[0].closed
    assert not (tmp_path / "status.pdf").exists()


def test_one_renderer_per_file(tmp_path):
    paths = [tmp_path / "a.msg", tmp_path / "b.msg"]
    for path in paths:
        path.write_bytes(b"")

    with patch("msg_to_pdf.converter.read_message", return_value=_message()), patch(
        "msg_to_pdf.converter.DocumentRenderer", FakeRenderer
    ):
        converter = MessageConverter(_settings())
        for path in paths:
            converter.convert(path)

    assert len(FakeRenderer.instances) == 2
    assert all(r.closed for r in FakeRenderer.instances)
