"""Bundle normalisation.

Turns the caller-supplied ``pdfDocumentBundle`` (already parsed JSON) into a
fully defaulted, immutable :class:`DocumentBundle`, or raises
:class:`BundleStructureError`. Nothing downstream has to re-check shapes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from .config import (
    DEFAULT_FRAME_COLOR,
    DEFAULT_FRAME_STROKE,
    DEFAULT_PAGE_SIZE,
)
from .errors import BundleStructureError


INLINE = "inline"
REFERENCE = "reference"

_REFERENCE_ALIASES = {"src", "url", "reference", "link", "href"}


@dataclass(frozen=True)
class ResourceRef:
    kind: str
    content: str | None = None
    url: str | None = None


@dataclass(frozen=True)
class Head:
    title: str
    meta: tuple[dict, ...] = ()
    styles: tuple[ResourceRef, ...] = ()


@dataclass(frozen=True)
class PageGeometry:
    # Either a size name ("A4", "Letter", ...) or a {"width", "height"} mapping.
    size: Any = DEFAULT_PAGE_SIZE
    header_height: str | None = None
    footer_height: str | None = None


@dataclass(frozen=True)
class SafeFrame:
    enabled: bool = True
    stroke: str = DEFAULT_FRAME_STROKE
    color: str = DEFAULT_FRAME_COLOR
    top_offset: str = "0"
    bottom_offset: str = "0"
    left_offset: str = "0"
    right_offset: str = "0"


@dataclass(frozen=True)
class Layout:
    page: PageGeometry = field(default_factory=PageGeometry)
    safe_frame: SafeFrame = field(default_factory=SafeFrame)
    use_builtin_paginator: bool = True


@dataclass(frozen=True)
class Security:
    sanitize_html: bool = False
    allow_external_resources: bool = True


@dataclass(frozen=True)
class PageDescriptor:
    body: str
    section_class: str = ""
    data_title: str | None = None
    header: str | None = None
    header_height: str | None = None
    footer: str | None = None
    footer_height: str | None = None
    show_header: bool = True
    show_footer: bool = True


@dataclass(frozen=True)
class DocumentBundle:
    head: Head
    pages: tuple[PageDescriptor, ...]
    layout: Layout = field(default_factory=Layout)
    security: Security = field(default_factory=Security)
    header: str = ""
    footer: str = ""
    scripts: tuple[ResourceRef, ...] = ()
    document_class: str = ""


def _mapping(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _text(value: object) -> str | None:
    if value is None:
        return None
    return str(value)


def _length(value: object) -> str | None:
    """Keep lengths as strings; accept bare JSON numbers too."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return f"{value:g}"
    s = str(value).strip()
    return s or None


def _css_value(value: object, default: str) -> str:
    s = _length(value)
    return s if s is not None else default


def parse_resource_ref(raw: object) -> ResourceRef | None:
    """Read one style/script reference.

    Accepts ``type`` or ``kind``. With neither, the kind is inferred from
    whichever of ``content``/``url`` is a string. Unusable entries yield None.
    """
    if not isinstance(raw, Mapping):
        return None
    content = raw.get("content") if isinstance(raw.get("content"), str) else None
    url = raw.get("url") if isinstance(raw.get("url"), str) else None

    declared = str(raw.get("type") or raw.get("kind") or "").strip().lower()
    if declared == INLINE:
        kind = INLINE
    elif declared in _REFERENCE_ALIASES:
        kind = REFERENCE
    elif content is not None:
        kind = INLINE
    elif url is not None:
        kind = REFERENCE
    else:
        return None
    return ResourceRef(kind=kind, content=content, url=url)


def _parse_refs(raw: object) -> tuple[ResourceRef, ...]:
    if not isinstance(raw, list):
        return ()
    refs = (parse_resource_ref(item) for item in raw)
    return tuple(r for r in refs if r is not None)


def _parse_layout(raw: Mapping[str, Any]) -> Layout:
    page_raw = _mapping(raw.get("page"))
    size = page_raw.get("size")
    if isinstance(size, Mapping):
        size = {"width": _length(size.get("width")), "height": _length(size.get("height"))}
    elif size is None or (isinstance(size, str) and not size.strip()):
        size = DEFAULT_PAGE_SIZE
    else:
        size = str(size).strip()

    sf = _mapping(raw.get("safeFrame"))
    color = str(sf.get("color") or "").strip().rstrip(";").strip() or DEFAULT_FRAME_COLOR

    return Layout(
        page=PageGeometry(
            size=size,
            header_height=_length(page_raw.get("headerHeight")),
            footer_height=_length(page_raw.get("footerHeight")),
        ),
        safe_frame=SafeFrame(
            enabled=sf.get("enabled") is not False,
            stroke=_css_value(sf.get("stroke"), DEFAULT_FRAME_STROKE),
            color=color,
            top_offset=_css_value(sf.get("topOffset"), "0"),
            bottom_offset=_css_value(sf.get("bottomOffset"), "0"),
            left_offset=_css_value(sf.get("leftOffset"), "0"),
            right_offset=_css_value(sf.get("rightOffset"), "0"),
        ),
        use_builtin_paginator=raw.get("useBuiltInPaginator") is not False,
    )


def _parse_page(raw: Mapping[str, Any]) -> PageDescriptor:
    section = _mapping(raw.get("section"))
    options = _mapping(raw.get("options"))
    return PageDescriptor(
        body=raw["body"],
        section_class=str(section.get("class") or "").strip(),
        data_title=_text(section.get("dataTitle")),
        header=raw.get("header") if isinstance(raw.get("header"), str) else None,
        header_height=_length(raw.get("headerHeight")),
        footer=raw.get("footer") if isinstance(raw.get("footer"), str) else None,
        footer_height=_length(raw.get("footerHeight")),
        show_header=options.get("showHeader") is not False,
        show_footer=options.get("showFooter") is not False,
    )


def _has_body(page: object) -> bool:
    if not isinstance(page, Mapping):
        return False
    body = page.get("body")
    return isinstance(body, str) and bool(body.strip())


def normalize_bundle(data: object) -> DocumentBundle:
    """Validate and default a raw bundle.

    Raises BundleStructureError when the title is missing, ``body.pages`` is
    not a list, or no page survives the empty-body filter.
    """
    if not isinstance(data, Mapping):
        raise BundleStructureError("pdfDocumentBundle must be an object")

    head_raw = _mapping(data.get("head"))
    title = head_raw.get("title")
    if title is None or not str(title).strip():
        raise BundleStructureError("head.title is required")

    meta_raw = head_raw.get("meta")
    meta = tuple(dict(m) for m in meta_raw if isinstance(m, Mapping)) if isinstance(meta_raw, list) else ()

    body_raw = _mapping(data.get("body"))
    pages_raw = body_raw.get("pages")
    if not isinstance(pages_raw, list):
        raise BundleStructureError("body.pages must be a list")

    pages = tuple(_parse_page(p) for p in pages_raw if _has_body(p))
    if not pages:
        raise BundleStructureError("no valid pages to render (all pages are missing a body)")

    security_raw = _mapping(data.get("security"))
    document_raw = _mapping(body_raw.get("document"))

    return DocumentBundle(
        head=Head(title=str(title), meta=meta, styles=_parse_refs(head_raw.get("styles"))),
        pages=pages,
        layout=_parse_layout(_mapping(data.get("layout"))),
        security=Security(
            sanitize_html=security_raw.get("sanitizeHtml") is True,
            allow_external_resources=security_raw.get("allowExternalResources") is not False,
        ),
        header=data.get("header") if isinstance(data.get("header"), str) else "",
        footer=data.get("footer") if isinstance(data.get("footer"), str) else "",
        scripts=_parse_refs(data.get("scripts")),
        document_class=str(document_raw.get("class") or "").strip(),
    )
