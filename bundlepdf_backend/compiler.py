from __future__ import annotations

import logging

from .assembler import assemble_pages
from .bundle import DocumentBundle, normalize_bundle
from .layout import (
    attr,
    build_layout_css,
    build_meta_tags,
    build_script_tags,
    build_style_tags,
)
from .paginator import paginator_script
from .resources import local_refs_only


logger = logging.getLogger(__name__)


def compile_bundle(bundle: DocumentBundle) -> str:
    """Render a normalised bundle into one self-contained HTML document.

    Order matters: the base layout sheet comes before caller styles so they can
    override it, and caller scripts run after the paginator has been registered.
    """
    styles = bundle.head.styles
    scripts = bundle.scripts
    if not bundle.security.allow_external_resources:
        styles = local_refs_only(styles, css=True)
        scripts = local_refs_only(scripts)

    doc_classes = " ".join(c for c in ("document", bundle.document_class) if c)
    paginator = paginator_script() if bundle.layout.use_builtin_paginator else ""

    return "".join([
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8" />',
        '<meta name="viewport" content="width=device-width,initial-scale=1" />',
        f"<title>{attr(bundle.head.title)}</title>",
        build_meta_tags(bundle.head.meta),
        build_layout_css(bundle.layout),
        build_style_tags(styles),
        "</head>",
        f'<body><div class="{attr(doc_classes)}">{assemble_pages(bundle)}</div>',
        paginator,
        build_script_tags(scripts),
        "</body>",
        "</html>",
    ])


def build_html_from_bundle(data: object) -> str:
    """Normalise a raw ``pdfDocumentBundle`` and compile it.

    Raises BundleStructureError for structurally invalid input.
    """
    bundle = normalize_bundle(data)
    html = compile_bundle(bundle)
    logger.info(
        f"Compiled bundle '{bundle.head.title}': {len(bundle.pages)} page(s), "
        f"paginator={'on' if bundle.layout.use_builtin_paginator else 'off'}, {len(html)} chars"
    )
    return html
