"""Headless Chromium rendering (the collaborator that actually prints pages)."""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any

from playwright.async_api import async_playwright
from pypdf import PdfReader, PdfWriter

from .config import CHROMIUM_ARGS, PAGINATION_TIMEOUT_MS, RENDER_TIMEOUT_MS
from .errors import RenderError
from .paginator import DONE_ATTRIBUTE, PAGE_COUNT_ATTRIBUTE, completion_expression


logger = logging.getLogger(__name__)

_RAW_HTML_MARGIN = {"top": "1cm", "right": "1cm", "bottom": "1cm", "left": "1cm"}
_ZERO_MARGIN = {"top": "0", "right": "0", "bottom": "0", "left": "0"}

# Request options handed to page.pdf() as-is under their Playwright names.
PASSTHROUGH_OPTIONS = {
    "pageRanges": "page_ranges",
    "displayHeaderFooter": "display_header_footer",
    "headerTemplate": "header_template",
    "footerTemplate": "footer_template",
    "width": "width",
    "height": "height",
    "outline": "outline",
    "tagged": "tagged",
}


@dataclass(frozen=True)
class PdfOptions:
    """Print options, camelCase on the wire, snake_case for Playwright."""

    format: str | None = None
    landscape: bool = False
    scale: float = 1.0
    margin: dict[str, str] | None = None
    print_background: bool = True
    prefer_css_page_size: bool | None = None
    compress: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_request(cls, raw: dict[str, Any] | None) -> "PdfOptions":
        raw = dict(raw or {})
        margin = raw.pop("margin", None)
        options = cls(
            format=raw.pop("format", None) or None,
            landscape=bool(raw.pop("landscape", False)),
            scale=float(raw.pop("scale", None) or 1.0),
            margin=dict(margin) if isinstance(margin, dict) else None,
            print_background=raw.pop("printBackground", True) is not False,
            prefer_css_page_size=raw.pop("preferCSSPageSize", None),
            compress=bool(raw.pop("compress", False)),
            extra={
                PASSTHROUGH_OPTIONS[key]: value
                for key, value in ((k, raw.pop(k)) for k in list(raw) if k in PASSTHROUGH_OPTIONS)
                if value is not None
            },
        )
        if raw:
            logger.warning(f"Ignoring unsupported pdfOptions: {', '.join(sorted(raw))}")
        return options

    def playwright_kwargs(self, *, from_bundle: bool) -> dict[str, Any]:
        # Bundles carry their own @page size and bands, so default to CSS size with no margins.
        prefer_css = self.prefer_css_page_size if self.prefer_css_page_size is not None else from_bundle
        kwargs: dict[str, Any] = {
            "print_background": self.print_background,
            "landscape": self.landscape,
            "scale": self.scale,
            "prefer_css_page_size": bool(prefer_css),
            "margin": self.margin or (_ZERO_MARGIN if from_bundle else _RAW_HTML_MARGIN),
        }
        if self.format:
            kwargs["format"] = self.format
        elif not from_bundle and "width" not in self.extra and "height" not in self.extra:
            kwargs["format"] = "A4"
        kwargs.update(self.extra)
        return kwargs


@dataclass(frozen=True)
class RenderedPdf:
    pdf_bytes: bytes
    page_boxes: int | None = None

    def __len__(self) -> int:
        return len(self.pdf_bytes)


async def render_html_to_pdf(
    html: str,
    options: PdfOptions | None = None,
    *,
    from_bundle: bool = False,
    wait_for_pagination: bool = False,
) -> RenderedPdf:
    """Load ``html`` in headless Chromium and print it.

    When ``wait_for_pagination`` is set, printing waits until the embedded
    paginator marks the document as finished.
    """
    options = options or PdfOptions()
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(args=CHROMIUM_ARGS)
            try:
                page = await browser.new_page()
                page.set_default_timeout(RENDER_TIMEOUT_MS)
                await page.set_content(html, wait_until="networkidle")

                # Wait for web fonts so measurements match the printed glyphs.
                try:
                    await page.evaluate(
                        """async () => { if (document.fonts && document.fonts.ready) { await document.fonts.ready; } }"""
                    )
                except Exception as e:
                    logger.debug(f"document.fonts.ready unavailable: {e}")

                page_boxes = None
                if wait_for_pagination:
                    await page.wait_for_function(completion_expression(), timeout=PAGINATION_TIMEOUT_MS)
                    state = await page.evaluate(
                        f"() => document.documentElement.getAttribute('{DONE_ATTRIBUTE}')"
                    )
                    if state != "true":
                        raise RenderError("Pagination failed inside the renderer")
                    count = await page.evaluate(
                        f"() => document.documentElement.getAttribute('{PAGE_COUNT_ATTRIBUTE}')"
                    )
                    page_boxes = int(count) if count else None

                pdf_bytes = await page.pdf(**options.playwright_kwargs(from_bundle=from_bundle))
            finally:
                await browser.close()
    except RenderError:
        raise
    except Exception as e:
        logger.error(f"Failed to render PDF: {e}", exc_info=True)
        raise RenderError(str(e)) from e

    if options.compress:
        pdf_bytes = compress_pdf(pdf_bytes)

    logger.info(f"Successfully rendered PDF: {len(pdf_bytes)} bytes, page boxes: {page_boxes}")
    return RenderedPdf(pdf_bytes=pdf_bytes, page_boxes=page_boxes)


def compress_pdf(pdf_bytes: bytes) -> bytes:
    """Recompress content streams with pypdf; returns the input on failure."""
    try:
        writer = PdfWriter(clone_from=PdfReader(io.BytesIO(pdf_bytes)))
        for page in writer.pages:
            page.compress_content_streams()
        writer.compress_identical_objects(remove_duplicates=True, remove_unreferenced=True)
        buf = io.BytesIO()
        writer.write(buf)
        compressed = buf.getvalue()
    except Exception as e:
        logger.warning(f"PDF compression failed, returning original PDF: {e}")
        return pdf_bytes

    logger.info(f"PDF compressed: {len(pdf_bytes)} bytes -> {len(compressed)} bytes")
    return compressed
