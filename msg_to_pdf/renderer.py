"""Render HTML documents to PDF bytes with WeasyPrint."""

from __future__ import annotations

import logging

from .exceptions import RenderError

logger = logging.getLogger(__name__)


def offline_url_fetcher(url: str, *args, **kwargs):
    """Resolve embedded ``data:`` URIs only; everything else must already be inlined."""
    if not url.startswith("data:"):
        raise ValueError(f"External resource blocked: {url}")
    from weasyprint import default_url_fetcher

    return default_url_fetcher(url, *args, **kwargs)


class DocumentRenderer:
    """A rendering engine instance, acquired per input file and closed afterwards.

    Args:
        page_size: CSS ``@page`` size, e.g. ``A4`` or ``Letter``.
        page_margin: CSS ``@page`` margin.
    """

    def __init__(self, page_size: str = "A4", page_margin: str = "20mm") -> None:
        try:
            from weasyprint import CSS
            from weasyprint.text.fonts import FontConfiguration
        except ImportError:
            raise ImportError(
                "weasyprint is required for DocumentRenderer. "
                "Install with: pip install weasyprint"
            )

        self._fonts = FontConfiguration()
        self._page_css = CSS(
            string=f"@page {{ size: {page_size}; margin: {page_margin}; }}",
            font_config=self._fonts,
        )
        self._closed = False
        logger.debug("Renderer ready (page size %s, margin %s)", page_size, page_margin)

    def render(self, markup: str) -> bytes:
        """Render a complete HTML document and return the PDF bytes."""
        if self._closed:
            raise RenderError("Renderer has already been closed")

        from weasyprint import HTML

        try:
            return HTML(string=markup, url_fetcher=offline_url_fetcher).write_pdf(
                stylesheets=[self._page_css],
                font_config=self._fonts,
            )
        except Exception as exc:
            raise RenderError(f"Rendering failed: {exc}") from exc

    def close(self) -> None:
        if self._closed:
            return
        self._fonts = None
        self._page_css = None
        self._closed = True
        logger.debug("Renderer released")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "DocumentRenderer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
