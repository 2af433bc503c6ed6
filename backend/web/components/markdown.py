"""
Safe Markdown renderer for the admin editor preview.

Why:
- Authors see the post/recipe body the way readers will (headings, lists,
  tables, images) while they type, without the preview becoming an XSS sink.

Security model:
- Let a markdown parser build the HTML (with HTML input disabled).
- Sanitize the output via a small whitelist so only known-safe tags remain.
"""
from __future__ import annotations

from markdown_it import MarkdownIt
import bleach


_ALLOWED_TAGS = [
    "p",
    "br",
    "hr",
    "strong",
    "em",
    "del",
    "s",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
    "ul",
    "ol",
    "li",
    "code",
    "pre",
    "blockquote",
    "a",
    "img",
]

_ALLOWED_ATTRIBUTES = {
    "a": ["href", "title"],
    "img": ["src", "alt", "title"],
}

_ALLOWED_PROTOCOLS = ["http", "https", "mailto"]

# Parser configuration:
# - html=False: raw HTML in a body renders as text.
# - linkify=False: avoid auto-linking plain URLs.
# - typographer=False: keep output deterministic (no auto smart quotes).
# - breaks=True: single newlines become <br>, like the editor shows them.
_MD = MarkdownIt(
    "commonmark",
    {
        "html": False,
        "linkify": False,
        "typographer": False,
        "breaks": True,
    },
).enable(["table", "strikethrough"])


def render_markdown_safe(src: str) -> str:
    """Render an author's markdown body to sanitized HTML.

    Parameters:
        src: Raw markdown string (may be empty).
    Returns:
        HTML limited to the whitelist above. Relative image paths such as
        `/api/media/...` are kept; `javascript:` and `data:` URLs are dropped.
    """
    if not src:
        return ""

    html = _MD.render(str(src))

    cleaned = bleach.clean(
        html,
        tags=_ALLOWED_TAGS,
        attributes=_ALLOWED_ATTRIBUTES,
        protocols=_ALLOWED_PROTOCOLS,
        strip=False,
    )
    return cleaned.strip()
