"""
Pytest configuration for bundlepdf
"""

import copy
import logging
import sys

import pytest


@pytest.fixture(autouse=True)
def configure_logging():
    """Console-only logging at WARNING so compiler chatter stays out of test output."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))

    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.WARNING)

    yield

    root_logger.handlers.clear()


BASE_BUNDLE = {
    "head": {
        "title": "Policy Schedule",
        "meta": [{"name": "author", "content": "Underwriting"}],
        "styles": [{"type": "inline", "content": ".lead{font-weight:600;}"}],
    },
    "layout": {
        "page": {"size": "A4", "headerHeight": "20mm", "footerHeight": "14mm"},
        "safeFrame": {"enabled": True},
    },
    "security": {"sanitizeHtml": False},
    "header": "<header><strong>ACME Insurance</strong></header>",
    "footer": (
        '<footer class="footer"><span>ACME</span>'
        '<span class="pagecount"><span class="current"></span>/<span class="total"></span></span></footer>'
    ),
    "body": {
        "pages": [
            {
                "section": {"class": "page cover", "dataTitle": "Cover"},
                "body": "<h1>Schedule</h1><p class=\"lead\">Summary of cover.</p>",
            },
        ],
    },
    "scripts": [],
}


@pytest.fixture
def make_bundle():
    """Factory returning a fresh bundle dict; keyword arguments replace top-level keys."""

    def _make(**overrides):
        bundle = copy.deepcopy(BASE_BUNDLE)
        for key, value in overrides.items():
            bundle[key] = value
        return bundle

    return _make


@pytest.fixture
def make_page():
    def _make(body="<p>Body</p>", **extra):
        page = {"section": {"class": "page"}, "body": body}
        page.update(extra)
        return page

    return _make
