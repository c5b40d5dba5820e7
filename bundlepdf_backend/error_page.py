"""Last-resort error document.

Standard library only and no layout/sanitizer imports: this has to work when
everything else in the package is broken.
"""
from __future__ import annotations

from html import escape


_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>PDF Error</title>
  <style>
    html, body { height: 100%; margin: 0; font-family: system-ui, -apple-system, "Segoe UI", Roboto, Arial, sans-serif; }
    .page { width: 210mm; height: 297mm; padding: 20mm; box-sizing: border-box; }
    h1 { color: #b91c1c; margin: 0 0 12px; }
    p { line-height: 1.5; color: #374151; }
    code { background: #f3f4f6; padding: 2px 6px; border-radius: 4px; white-space: pre-wrap; word-break: break-word; }
    @page { size: A4; margin: 0; }
  </style>
</head>
<body>
  <section class="page">
    <h1>Something went wrong</h1>
    <p>The document could not be generated. Please check the request and try again.</p>
    <p><strong>Detail:</strong> <code>__MESSAGE__</code></p>
  </section>
</body>
</html>"""


def build_error_html(message: object = "") -> str:
    """Return a single-page HTML document showing ``message`` (escaped)."""
    try:
        text = "" if message is None else str(message)
    except Exception:
        text = repr(type(message))
    return _TEMPLATE.replace("__MESSAGE__", escape(text, quote=True))
