"""Page assembly: one ``<section class="page">`` per surviving page descriptor."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from bs4 import BeautifulSoup
from bs4.element import Tag

from .bundle import DocumentBundle, PageDescriptor, Security
from .layout import attr, canonical_length
from .resources import strip_external_resources
from .sanitizer import sanitize_html


logger = logging.getLogger(__name__)

PAGE_CLASS = "page"
NO_HEADER_CLASS = "no-header"
NO_FOOTER_CLASS = "no-footer"

EMPTY_HEADER = "<header></header>"
EMPTY_FOOTER = "<footer></footer>"


@dataclass(frozen=True)
class SectionAttributes:
    classes: tuple[str, ...]
    data_title: str | None
    header_height: str | None
    footer_height: str | None
    style: str

    def render(self) -> str:
        parts = [f'class="{attr(" ".join(self.classes))}"']
        if self.data_title is not None:
            parts.append(f'data-title="{attr(self.data_title)}"')
        if self.header_height:
            parts.append(f'data-header-height="{attr(self.header_height)}"')
        if self.footer_height:
            parts.append(f'data-footer-height="{attr(self.footer_height)}"')
        if self.style:
            parts.append(f'style="{attr(self.style)}"')
        return " ".join(parts)


def _merge_class_list(existing: str, add: list[str]) -> list[str]:
    current = [p for p in existing.split() if p.strip()]
    for c in add:
        if c and c not in current:
            current.append(c)
    return current


def section_attributes(page: PageDescriptor) -> SectionAttributes:
    classes = _merge_class_list(page.section_class, [])
    if PAGE_CLASS not in classes:
        classes.insert(0, PAGE_CLASS)
    markers = []
    if not page.show_header:
        markers.append(NO_HEADER_CLASS)
    if not page.show_footer:
        markers.append(NO_FOOTER_CLASS)
    classes = _merge_class_list(" ".join(classes), markers)

    header_h = canonical_length(page.header_height)
    footer_h = canonical_length(page.footer_height)

    # Hidden bands stay collapsed by the no-header/no-footer rules, so they get no inline height.
    style = []
    if header_h and page.show_header:
        style.append(f"--header-h:{header_h};")
    if footer_h and page.show_footer:
        style.append(f"--footer-h:{footer_h};")

    return SectionAttributes(
        classes=tuple(classes),
        data_title=page.data_title,
        header_height=header_h,
        footer_height=footer_h,
        style="".join(style),
    )


def _has_top_level(fragment: str, tag: str, css_class: str | None = None) -> bool:
    soup = BeautifulSoup(fragment, "html.parser")
    for el in soup.find_all(tag, recursive=False):
        if not isinstance(el, Tag):
            continue
        if css_class is None or css_class in (el.get("class") or []):
            return True
    return False


def wrap_band(fragment: str, tag: str) -> str:
    """Wrap header/footer content in its band element unless it already is one."""
    if _has_top_level(fragment, tag):
        return fragment
    return f"<{tag}>{fragment}</{tag}>"


def wrap_body(fragment: str) -> str:
    if _has_top_level(fragment, "main", "body"):
        return fragment
    return f'<main class="body">{fragment}</main>'


def _pick(page_value: str | None, global_value: str) -> str | None:
    if page_value is not None and page_value.strip():
        return page_value
    if global_value and global_value.strip():
        return global_value
    return None


def fragment_filter(security: Security) -> Callable[[str], str]:
    """Per-fragment pipeline chosen by the bundle's security settings."""
    steps: list[Callable[[str], str]] = []
    if not security.allow_external_resources:
        steps.append(strip_external_resources)
    if security.sanitize_html:
        steps.append(sanitize_html)

    def apply(fragment: str) -> str:
        for step in steps:
            fragment = step(fragment)
        return fragment

    return apply


def assemble_page(page: PageDescriptor, bundle: DocumentBundle, clean: Callable[[str], str]) -> str:
    attrs = section_attributes(page)

    parts = []
    if page.show_header:
        content = _pick(page.header, bundle.header)
        parts.append(clean(wrap_band(content, "header") if content else EMPTY_HEADER))

    parts.append(clean(wrap_body(page.body)))

    if page.show_footer:
        content = _pick(page.footer, bundle.footer)
        parts.append(clean(wrap_band(content, "footer") if content else EMPTY_FOOTER))

    return f"<section {attrs.render()}>{''.join(parts)}</section>"


def assemble_pages(bundle: DocumentBundle) -> str:
    clean = fragment_filter(bundle.security)
    logger.debug(f"Assembling {len(bundle.pages)} page(s)")
    return "".join(assemble_page(p, bundle, clean) for p in bundle.pages)
