from __future__ import annotations


class BundleStructureError(ValueError):
    """The submitted bundle cannot be compiled (missing title, bad pages, ...).

    The message is meant to be shown to the caller as-is.
    """


class RenderError(RuntimeError):
    """Headless Chromium failed to load or print a document."""
