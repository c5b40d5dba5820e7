from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Iterable

from bs4 import BeautifulSoup
from bs4.element import Stylesheet, Tag

from .bundle import INLINE, REFERENCE, ResourceRef


logger = logging.getLogger(__name__)

_URL_ATTRS = (
    "src", "href", "srcset", "poster", "data-src", "data",
    "xlink:href", "background", "action", "formaction",
)

# @import "x.css"; / @import url(x.css) screen;
_CSS_IMPORT_RE = re.compile(
    r"""@import\s+(?:url\(\s*)?(['"]?)(?P<url>[^'")\s;]+)\1\s*\)?[^;]*;?""",
    re.IGNORECASE,
)
_CSS_URL_RE = re.compile(r"""url\(\s*(['"]?)(?P<url>.*?)\1\s*\)""", re.IGNORECASE)


def is_external_url(url: str | None) -> bool:
    """True for http(s) and protocol-relative URLs; data: and relative paths are local."""
    u = (url or "").strip().lower()
    return u.startswith(("http://", "https://", "//"))


def _srcset_is_external(value: str) -> bool:
    candidates = [part.strip().split(" ", 1)[0] for part in value.split(",")]
    return any(is_external_url(c) for c in candidates if c)


def _might_be_external(text: str) -> bool:
    lowered = text.lower()
    return "http:" in lowered or "https:" in lowered or "//" in lowered


def strip_external_css(css: str) -> str:
    """Drop off-host ``@import`` rules and blank off-host ``url(...)`` values."""
    if not css or not _might_be_external(css):
        return css

    def _import(m: re.Match) -> str:
        return "" if is_external_url(m.group("url")) else m.group(0)

    def _url(m: re.Match) -> str:
        return "none" if is_external_url(m.group("url")) else m.group(0)

    return _CSS_URL_RE.sub(_url, _CSS_IMPORT_RE.sub(_import, css))


def local_refs_only(refs: Iterable[ResourceRef], *, css: bool = False) -> tuple[ResourceRef, ...]:
    """Drop style/script references that point off-host.

    With ``css`` set, inline stylesheet content is also stripped of off-host
    imports and urls.
    """
    kept = []
    for ref in refs:
        if ref.kind == REFERENCE and is_external_url(ref.url):
            logger.info(f"Dropping external resource reference: {ref.url}")
            continue
        if css and ref.kind == INLINE and ref.content:
            ref = replace(ref, content=strip_external_css(ref.content))
        kept.append(ref)
    return tuple(kept)


def strip_external_resources(html_text: str) -> str:
    """Remove external URL attributes, external <link> elements and off-host CSS from a fragment.

    Fragments without any external reference are returned byte-for-byte.
    """
    raw = html_text or ""
    if not _might_be_external(raw):
        return raw

    soup = BeautifulSoup(raw, "html.parser")
    changed = False
    for el in soup.find_all(True):
        if not isinstance(el, Tag):
            continue
        if el.name == "link" and is_external_url(el.get("href")):
            el.decompose()
            changed = True
            continue

        if el.name == "style":
            css = str(el.string or "")
            cleaned = strip_external_css(css)
            if cleaned != css:
                el.clear()
                el.append(Stylesheet(cleaned))
                changed = True

        style = el.get("style")
        if style is not None:
            cleaned = strip_external_css(str(style))
            if cleaned != style:
                el["style"] = cleaned
                changed = True

        for name in _URL_ATTRS:
            value = el.get(name)
            if value is None:
                continue
            value = " ".join(value) if isinstance(value, list) else str(value)
            external = _srcset_is_external(value) if name == "srcset" else is_external_url(value)
            if external:
                del el[name]
                changed = True

    return str(soup) if changed else raw
