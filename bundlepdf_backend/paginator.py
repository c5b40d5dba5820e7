"""Loader for the in-browser pagination routine.

The routine itself lives in ``paginator.js`` next to this module. It runs in
the rendering browser after layout, splits each ``section.page`` into as many
cloned page boxes as its content needs, numbers them, and flags completion on
``<html data-paginated="true" data-page-count="N">``.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from .config import OVERFLOW_BUFFER_PX


SCRIPT_PATH = Path(__file__).resolve().parent / "paginator.js"

# Attribute the renderer polls to know the document is final.
DONE_ATTRIBUTE = "data-paginated"
PAGE_COUNT_ATTRIBUTE = "data-page-count"


@lru_cache(maxsize=1)
def paginator_source() -> str:
    source = SCRIPT_PATH.read_text(encoding="utf-8")
    return source.replace("__OVERFLOW_BUFFER_PX__", str(OVERFLOW_BUFFER_PX))


def paginator_script() -> str:
    return f'<script id="bundle-paginator">\n{paginator_source()}</script>'


def completion_expression() -> str:
    """JS predicate that turns true once pagination has finished or failed."""
    return f"() => !!document.documentElement.getAttribute('{DONE_ATTRIBUTE}')"
