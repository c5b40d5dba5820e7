from __future__ import annotations

import logging
import os


# Log level for the service and the compiler modules.
# Override with env var BUNDLEPDF_LOG_LEVEL (DEBUG, INFO, WARNING, ...).
LOG_LEVEL = os.environ.get("BUNDLEPDF_LOG_LEVEL", "INFO").strip().upper() or "INFO"

# Headless Chromium budget for loading markup + printing it.
RENDER_TIMEOUT_MS = int(os.environ.get("BUNDLEPDF_RENDER_TIMEOUT_MS", "30000"))

# How long the renderer waits for the embedded paginator to flag completion.
PAGINATION_TIMEOUT_MS = int(os.environ.get("BUNDLEPDF_PAGINATION_TIMEOUT_MS", "15000"))

# Chromium flags; containers usually need the sandbox disabled.
_chromium_args_raw = os.environ.get("BUNDLEPDF_CHROMIUM_ARGS")
if _chromium_args_raw and _chromium_args_raw.strip():
    CHROMIUM_ARGS = _chromium_args_raw.split()
else:
    CHROMIUM_ARGS = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-gpu",
    ]

# Request size limit for conversion payloads (best-effort; proxies usually enforce too).
MAX_BUNDLE_BYTES = int(os.environ.get("BUNDLEPDF_MAX_BUNDLE_BYTES", str(20 * 1024 * 1024)))  # 20MB

PORT = int(os.environ.get("PORT", "8010"))

# Layout defaults emitted into the base stylesheet.
DEFAULT_PAGE_SIZE = "A4"
DEFAULT_HEADER_HEIGHT = "20mm"
DEFAULT_FOOTER_HEIGHT = "14mm"
DEFAULT_FRAME_STROKE = "1px"
DEFAULT_FRAME_COLOR = "#000"

# Pixels of slack the paginator keeps above the safe bottom edge.
OVERFLOW_BUFFER_PX = 2

# Output filenames.
PDF_FILENAME_PREFIX = "bundle-html2pdf"
ERROR_PDF_FILENAME = f"{PDF_FILENAME_PREFIX}-error.pdf"


def configure_logging(level: str | None = None) -> None:
    """Apply a basic console configuration unless the host already set one up."""
    if logging.getLogger().handlers:
        return
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
