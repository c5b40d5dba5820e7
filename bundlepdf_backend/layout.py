"""Head and base stylesheet compilation.

Page geometry is expressed as CSS custom properties on ``:root`` so caller
stylesheets (emitted after this one) and the paginator read the same values.
"""
from __future__ import annotations

import re
from html import escape
from typing import Any, Iterable, Mapping

from .bundle import INLINE, REFERENCE, Layout, ResourceRef
from .config import DEFAULT_FOOTER_HEIGHT, DEFAULT_FRAME_STROKE, DEFAULT_HEADER_HEIGHT


PAGE_SIZES: dict[str, tuple[str, str]] = {
    "A3": ("297mm", "420mm"),
    "A4": ("210mm", "297mm"),
    "A5": ("148mm", "210mm"),
    "LETTER": ("8.5in", "11in"),
    "LEGAL": ("8.5in", "14in"),
    "TABLOID": ("11in", "17in"),
}

_BARE_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")
_CAMEL_RE = re.compile(r"[A-Z]")


def resolve_page_size(size: Any) -> tuple[str, str]:
    """Return (width, height) for a size name or an explicit mapping.

    Explicit dimensions always win; a missing side falls back to A4's.
    Unknown or absent names fall back to A4.
    """
    a4_width, a4_height = PAGE_SIZES["A4"]
    if isinstance(size, Mapping):
        width = canonical_length(size.get("width")) or a4_width
        height = canonical_length(size.get("height")) or a4_height
        return width, height
    return PAGE_SIZES.get(str(size or "").strip().upper(), (a4_width, a4_height))


def canonical_length(value: Any) -> str | None:
    """``25`` / ``"25"`` -> ``"25mm"``; ``"25mm"``, ``"1in"``, ``"calc(...)"`` unchanged."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return f"{value:g}mm"
    s = str(value).strip()
    if not s:
        return None
    if _BARE_NUMBER_RE.match(s):
        return f"{s}mm"
    return s


def attr(value: Any) -> str:
    return escape(str(value), quote=True)


def build_meta_tags(meta: Iterable[Mapping[str, Any]]) -> str:
    tags = []
    for m in meta:
        parts = []
        for key, value in m.items():
            if value is None or value == "":
                continue
            name = _CAMEL_RE.sub(lambda c: "-" + c.group(0).lower(), str(key))
            parts.append(f'{name}="{attr(value)}"')
        if parts:
            tags.append(f"<meta {' '.join(parts)} />")
    return "".join(tags)


def build_style_tags(styles: Iterable[ResourceRef]) -> str:
    tags = []
    for s in styles:
        if s.kind == INLINE and s.content is not None:
            tags.append(f"<style>{s.content}</style>")
        elif s.kind == REFERENCE and s.url and s.url.strip():
            tags.append(f'<link rel="stylesheet" href="{attr(s.url)}" />')
    return "".join(tags)


def build_script_tags(scripts: Iterable[ResourceRef]) -> str:
    tags = []
    for s in scripts:
        if s.kind == INLINE and s.content is not None:
            tags.append(f"<script>{s.content}</script>")
        elif s.kind == REFERENCE and s.url and s.url.strip():
            tags.append(f'<script src="{attr(s.url)}"></script>')
    return "".join(tags)


_SAFE_FRAME_CSS = """
main.body::before{
  content:"";
  position:absolute;
  left:var(--safe-left-offset);
  right:var(--safe-right-offset);
  top:var(--safe-top-offset);
  bottom:var(--safe-bottom-offset);
  box-shadow:inset 0 0 0 var(--frame-stroke) var(--frame-color);
  pointer-events:none;
  box-sizing:border-box;
  z-index:2;
}
"""


def build_layout_css(layout: Layout) -> str:
    """Base layout stylesheet: page box, bands, body inset, safe frame, print rules."""
    width, height = resolve_page_size(layout.page.size)
    header_h = canonical_length(layout.page.header_height) or DEFAULT_HEADER_HEIGHT
    footer_h = canonical_length(layout.page.footer_height) or DEFAULT_FOOTER_HEIGHT
    sf = layout.safe_frame
    stroke = canonical_length(sf.stroke) or DEFAULT_FRAME_STROKE
    top_off, bottom_off, left_off, right_off = (
        canonical_length(v) or "0"
        for v in (sf.top_offset, sf.bottom_offset, sf.left_offset, sf.right_offset)
    )

    # The overlay is a pseudo-element with an inset shadow: it never takes part in box sizing.
    frame_css = _SAFE_FRAME_CSS if sf.enabled else ""

    return f"""
<style id="bundle-layout">
:root{{
  --page-width:{width};
  --page-height:{height};
  --header-h:{header_h};
  --footer-h:{footer_h};

  --pad-v:5mm;
  --pad-h:10mm;

  --frame-stroke:{stroke};
  --frame-color:{sf.color};
  --safe-top-offset:{top_off};
  --safe-bottom-offset:{bottom_off};
  --safe-left-offset:{left_off};
  --safe-right-offset:{right_off};
}}

html,body{{margin:0;padding:0;background:#fff;font-family:system-ui,-apple-system,"Segoe UI",Roboto,"Helvetica Neue",Arial,"Noto Sans";}}
.document{{background:#fff;}}
.page{{
  width:var(--page-width);
  height:var(--page-height);
  margin:0 auto;
  position:relative;
  overflow:hidden;
  box-sizing:border-box;
  page-break-after:always;
  break-after:page;
  background:#fff;
}}
.page:last-child{{page-break-after:auto;break-after:auto;}}

.page > header{{
  height:var(--header-h);
  padding:0 var(--pad-h);
  display:flex;align-items:center;justify-content:space-between;
  border-bottom:1px solid #e5e7eb;box-sizing:border-box;overflow:hidden;
}}
.page > footer{{
  height:var(--footer-h);
  padding:0 var(--pad-h);
  display:flex;align-items:center;justify-content:space-between;
  color:#6b7280;font-size:10px;border-top:1px solid #e5e7eb;
  position:absolute;left:0;right:0;bottom:0;box-sizing:border-box;overflow:hidden;
}}

.page > main.body{{
  position:absolute;left:0;right:0;
  top:var(--header-h);bottom:var(--footer-h);
  padding:var(--pad-v) var(--pad-h);
  box-sizing:border-box;overflow:hidden;
}}
{frame_css}
.page.no-header{{--header-h:0px;}}
.page.no-footer{{--footer-h:0px;}}
.page.no-header > header,
.page.no-footer > footer{{display:none;}}

.flow{{padding-bottom:3mm;}}
.flow > *{{break-inside:avoid;}}
.forcePageEnd{{page-break-after:always;break-after:page;}}

@media print{{
  @page{{size:{width} {height};margin:0;}}
  body{{-webkit-print-color-adjust:exact;print-color-adjust:exact;}}
  .page{{box-shadow:none;margin:0;}}
}}
</style>"""
