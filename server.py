from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, Field

from bundlepdf_backend.bundle import normalize_bundle
from bundlepdf_backend.compiler import build_html_from_bundle, compile_bundle
from bundlepdf_backend.config import (
    ERROR_PDF_FILENAME,
    MAX_BUNDLE_BYTES,
    PDF_FILENAME_PREFIX,
    PORT,
    configure_logging,
)
from bundlepdf_backend.error_page import build_error_html
from bundlepdf_backend.errors import BundleStructureError
from bundlepdf_backend.renderer import PdfOptions, render_html_to_pdf


configure_logging()
logger = logging.getLogger("bundlepdf.server")


class ConversionRequest(BaseModel):
    html: Optional[str] = None
    htmlContent: Optional[str] = None
    pdfDocumentBundle: Optional[dict[str, Any]] = None
    pdfOptions: dict[str, Any] = Field(default_factory=dict)


class BundleRequest(BaseModel):
    pdfDocumentBundle: dict[str, Any]


app = FastAPI(title="bundlepdf")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def _limit_body_size(request: Request, call_next):
    length = request.headers.get("content-length")
    if length and length.isdigit() and int(length) > MAX_BUNDLE_BYTES:
        return JSONResponse({"detail": "Payload too large"}, status_code=413)
    return await call_next(request)


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")


def _pdf_response(pdf_bytes: bytes, filename: str, *, error: bool = False) -> Response:
    headers = {
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-store",
        "X-Content-Type-Options": "nosniff",
    }
    if error:
        headers["X-Error"] = "true"
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)


def _markup_for(payload: ConversionRequest) -> tuple[str, bool, bool]:
    """Pick the markup to print: (html, from_bundle, wait_for_pagination)."""
    if payload.pdfDocumentBundle is not None:
        bundle = normalize_bundle(payload.pdfDocumentBundle)
        return compile_bundle(bundle), True, bundle.layout.use_builtin_paginator

    html = payload.html or payload.htmlContent
    if not html or not html.strip():
        raise BundleStructureError('Either "html", "htmlContent", or "pdfDocumentBundle" must be provided')
    return html, False, False


@app.post("/api/v1/bundle/bundleHtml2PDF")
async def bundle_html_to_pdf(payload: ConversionRequest) -> Response:
    try:
        # Compilation is CPU-bound and runs in the worker pool.
        html, from_bundle, paginated = await run_in_threadpool(_markup_for, payload)
        options = PdfOptions.from_request(payload.pdfOptions)
        rendered = await render_html_to_pdf(
            html, options, from_bundle=from_bundle, wait_for_pagination=paginated
        )
        logger.info(f"PDF generated successfully. Size: {len(rendered)} bytes")
        return _pdf_response(rendered.pdf_bytes, f"{PDF_FILENAME_PREFIX}-{_timestamp()}.pdf")
    except Exception as e:
        error_message = str(e) or "An unknown error occurred"
        logger.error(f"Error generating PDF: {error_message}", exc_info=True)

    fallback_html = build_error_html(
        f"PDF generation failed: {error_message}\n\nPlease check your input and try again."
    )
    try:
        rendered = await render_html_to_pdf(fallback_html, PdfOptions(format="A4"))
    except Exception as fallback_err:
        logger.error(f"Fallback PDF failed: {fallback_err}", exc_info=True)
        return JSONResponse(
            {
                "success": False,
                "error": {
                    "message": "PDF generation failed and fallback also failed",
                    "originalError": error_message,
                    "fallbackError": str(fallback_err) or "Unknown fallback error",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            },
            status_code=500,
        )

    return _pdf_response(rendered.pdf_bytes, ERROR_PDF_FILENAME, error=True)


@app.post("/api/v1/bundle/html")
async def bundle_to_html(payload: BundleRequest) -> HTMLResponse:
    # Preview the compiled document without printing it.
    try:
        html = await run_in_threadpool(build_html_from_bundle, payload.pdfDocumentBundle)
    except BundleStructureError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return HTMLResponse(html, headers={"Cache-Control": "no-store"})


@app.get("/api/health")
async def health() -> JSONResponse:
    return JSONResponse({"ok": True})


if __name__ == "__main__":
    # Convenience: python server.py
    import uvicorn

    port = int(os.environ.get("PORT", str(PORT)))
    uvicorn.run("server:app", host="127.0.0.1", port=port, reload=False)
