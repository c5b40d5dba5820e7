"""
HTML sanitizer for page fragments.

Only used when a bundle sets ``security.sanitizeHtml``. Sanitisation is
fail-open: a missing bleach install or a bleach error leaves the fragment
untouched and is logged, the compile never fails because of it.
"""

import logging

try:
    import bleach
    from bleach.css_sanitizer import CSSSanitizer
    BLEACH_AVAILABLE = True
except ImportError:
    BLEACH_AVAILABLE = False


logger = logging.getLogger(__name__)


# Layout and print markup that page fragments legitimately use.
ALLOWED_TAGS = [
    'header', 'footer', 'main', 'section', 'article', 'aside', 'nav', 'figure', 'figcaption',
    'div', 'span', 'p', 'br', 'hr', 'strong', 'b', 'em', 'i', 'u', 's', 'small', 'sub', 'sup',
    'mark', 'abbr', 'cite', 'q', 'time',
    'a', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'blockquote', 'ol', 'ul', 'li', 'dl', 'dt', 'dd', 'pre', 'code',
    'table', 'caption', 'colgroup', 'col', 'thead', 'tbody', 'tfoot', 'tr', 'th', 'td',
    'img', 'picture', 'source', 'svg', 'path', 'g', 'rect', 'circle', 'line', 'polyline', 'polygon',
]

ALLOWED_ATTRIBUTES = {
    '*': ['class', 'id', 'style', 'title', 'lang', 'dir'],
    'a': ['href', 'title', 'target', 'rel'],
    'img': ['src', 'alt', 'title', 'width', 'height', 'srcset'],
    'source': ['src', 'srcset', 'type', 'media'],
    'table': ['border', 'cellpadding', 'cellspacing'],
    'td': ['colspan', 'rowspan'],
    'th': ['colspan', 'rowspan', 'scope'],
    'col': ['span'],
    'time': ['datetime'],
    'svg': ['viewbox', 'width', 'height', 'xmlns', 'fill', 'stroke'],
    'path': ['d', 'fill', 'stroke', 'stroke-width'],
    'rect': ['x', 'y', 'width', 'height', 'rx', 'ry', 'fill', 'stroke'],
    'circle': ['cx', 'cy', 'r', 'fill', 'stroke'],
    'line': ['x1', 'y1', 'x2', 'y2', 'stroke', 'stroke-width'],
    'polyline': ['points', 'fill', 'stroke'],
    'polygon': ['points', 'fill', 'stroke'],
    'g': ['fill', 'stroke', 'transform'],
}

ALLOWED_PROTOCOLS = ['http', 'https', 'mailto', 'data']


def _allow_attribute(tag: str, name: str, value: str) -> bool:
    # data-* hooks drive page numbering and caller scripts.
    if name.startswith('data-'):
        return True
    return name in ALLOWED_ATTRIBUTES.get(tag, []) or name in ALLOWED_ATTRIBUTES['*']


def sanitize_html(html: str) -> str:
    """
    Sanitize one header, body or footer fragment.

    Args:
        html: HTML fragment

    Returns:
        Sanitized fragment, or the original one when sanitization is unavailable or fails
    """
    if not html:
        return html

    if not BLEACH_AVAILABLE:
        logger.warning(
            "Bleach is not installed. HTML sanitization skipped. "
            "Install with: pip install 'bleach[css]'"
        )
        return html

    try:
        return bleach.clean(
            html,
            tags=ALLOWED_TAGS,
            attributes=_allow_attribute,
            protocols=ALLOWED_PROTOCOLS,
            css_sanitizer=CSSSanitizer(),
            strip=True,
            strip_comments=True,
        )
    except Exception as e:
        logger.error(f"HTML sanitization failed, using fragment unmodified: {e}", exc_info=True)
        return html
