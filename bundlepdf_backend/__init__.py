"""Document-bundle compiler for HTML-to-PDF printing.

Route handlers stay thin; the work lives here:
- bundle normalisation and validation
- head, base layout stylesheet and page section assembly
- the in-browser paginator that clones page boxes as content overflows
- a dependency-free error document for the fallback print

Security note:
Bundle fragments are treated as opaque markup. Set ``security.sanitizeHtml``
to run them through bleach and ``security.allowExternalResources: false`` to
strip off-host URLs before the document reaches the browser.
"""
from __future__ import annotations

from .compiler import build_html_from_bundle, compile_bundle
from .error_page import build_error_html
from .errors import BundleStructureError

__all__ = [
    "build_html_from_bundle",
    "compile_bundle",
    "build_error_html",
    "BundleStructureError",
]
