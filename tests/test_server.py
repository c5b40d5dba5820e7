"""Tests for the HTTP boundary, with the browser renderer replaced by a fake."""

import pytest
from fastapi.testclient import TestClient

import server
from bundlepdf_backend.renderer import RenderedPdf


class FakeRenderer:
    """Records every render call; fails for the first ``fail_times`` calls."""

    def __init__(self, fail_times=0):
        self.calls = []
        self.fail_times = fail_times

    async def __call__(self, html, options=None, *, from_bundle=False, wait_for_pagination=False):
        self.calls.append({
            "html": html,
            "options": options,
            "from_bundle": from_bundle,
            "wait_for_pagination": wait_for_pagination,
        })
        if len(self.calls) <= self.fail_times:
            raise RuntimeError(f"renderer down #{len(self.calls)}")
        return RenderedPdf(pdf_bytes=b"%PDF-1.7 fake", page_boxes=1)


@pytest.fixture
def client():
    return TestClient(server.app)


@pytest.fixture
def renderer(monkeypatch):
    fake = FakeRenderer()
    monkeypatch.setattr(server, "render_html_to_pdf", fake)
    return fake


def test_bundle_to_pdf(client, renderer, make_bundle):
    response = client.post("/api/v1/bundle/bundleHtml2PDF", json={"pdfDocumentBundle": make_bundle()})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="bundle-html2pdf-' in response.headers["content-disposition"]
    assert response.headers["x-content-type-options"] == "nosniff"
    assert "x-error" not in response.headers
    assert response.content == b"%PDF-1.7 fake"

    call = renderer.calls[0]
    assert call["from_bundle"] is True
    assert call["wait_for_pagination"] is True
    assert '<script id="bundle-paginator">' in call["html"]


def test_bundle_without_paginator_does_not_wait(client, renderer, make_bundle):
    bundle = make_bundle(layout={"useBuiltInPaginator": False})

    client.post("/api/v1/bundle/bundleHtml2PDF", json={"pdfDocumentBundle": bundle})

    assert renderer.calls[0]["wait_for_pagination"] is False


def test_raw_html(client, renderer):
    response = client.post(
        "/api/v1/bundle/bundleHtml2PDF",
        json={"htmlContent": "<h1>Hello</h1>", "pdfOptions": {"format": "Letter", "landscape": True}},
    )

    assert response.status_code == 200
    call = renderer.calls[0]
    assert call["html"] == "<h1>Hello</h1>"
    assert call["from_bundle"] is False
    assert call["options"].format == "Letter"
    assert call["options"].landscape is True


def test_empty_request_renders_error_document(client, renderer):
    response = client.post("/api/v1/bundle/bundleHtml2PDF", json={})

    assert response.status_code == 200
    assert response.headers["x-error"] == "true"
    assert 'filename="bundle-html2pdf-error.pdf"' in response.headers["content-disposition"]
    assert len(renderer.calls) == 1
    assert "must be provided" in renderer.calls[0]["html"]
    assert "Something went wrong" in renderer.calls[0]["html"]


def test_invalid_bundle_renders_error_document(client, renderer, make_bundle):
    bundle = make_bundle(body={"pages": [{"body": ""}]})

    response = client.post("/api/v1/bundle/bundleHtml2PDF", json={"pdfDocumentBundle": bundle})

    assert response.headers["x-error"] == "true"
    assert "no valid pages" in renderer.calls[0]["html"]


def test_render_failure_falls_back(client, monkeypatch, make_bundle):
    fake = FakeRenderer(fail_times=1)
    monkeypatch.setattr(server, "render_html_to_pdf", fake)

    response = client.post("/api/v1/bundle/bundleHtml2PDF", json={"pdfDocumentBundle": make_bundle()})

    assert response.status_code == 200
    assert response.headers["x-error"] == "true"
    assert len(fake.calls) == 2
    assert "renderer down #1" in fake.calls[1]["html"]


def test_fallback_failure_returns_json(client, monkeypatch, make_bundle):
    fake = FakeRenderer(fail_times=2)
    monkeypatch.setattr(server, "render_html_to_pdf", fake)

    response = client.post("/api/v1/bundle/bundleHtml2PDF", json={"pdfDocumentBundle": make_bundle()})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"]["originalError"] == "renderer down #1"
    assert body["error"]["fallbackError"] == "renderer down #2"


def test_preview_html(client, make_bundle):
    response = client.post("/api/v1/bundle/html", json={"pdfDocumentBundle": make_bundle()})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert '<section class="page cover" data-title="Cover">' in response.text


def test_preview_rejects_bad_bundle(client, make_bundle):
    response = client.post("/api/v1/bundle/html", json={"pdfDocumentBundle": make_bundle(head={})})

    assert response.status_code == 400
    assert response.json()["detail"] == "head.title is required"


def test_health(client):
    assert client.get("/api/health").json() == {"ok": True}


@pytest.fixture
def worker_calls(monkeypatch):
    """Records which callables the handlers hand to the worker pool."""
    calls = []
    real = server.run_in_threadpool

    async def _recording(func, *args, **kwargs):
        calls.append(func.__name__)
        return await real(func, *args, **kwargs)

    monkeypatch.setattr(server, "run_in_threadpool", _recording)
    return calls


def test_conversion_compiles_in_worker_pool(client, renderer, worker_calls, make_bundle):
    response = client.post("/api/v1/bundle/bundleHtml2PDF", json={"pdfDocumentBundle": make_bundle()})

    assert response.status_code == 200
    assert worker_calls == ["_markup_for"]
    assert '<script id="bundle-paginator">' in renderer.calls[0]["html"]


def test_preview_compiles_in_worker_pool(client, worker_calls, make_bundle):
    response = client.post("/api/v1/bundle/html", json={"pdfDocumentBundle": make_bundle()})

    assert response.status_code == 200
    assert worker_calls == ["build_html_from_bundle"]


def test_passthrough_pdf_options_reach_renderer(client, renderer):
    client.post(
        "/api/v1/bundle/bundleHtml2PDF",
        json={"html": "<p>x</p>", "pdfOptions": {"pageRanges": "1-2", "displayHeaderFooter": True}},
    )

    kwargs = renderer.calls[0]["options"].playwright_kwargs(from_bundle=False)
    assert kwargs["page_ranges"] == "1-2"
    assert kwargs["display_header_footer"] is True
