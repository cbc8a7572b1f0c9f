"""Input filters for maintenance copy.

Everything that ends up on a public maintenance page passes through here
before it is stored, so the gate can render it without further escaping.
"""

import re
from urllib.parse import urlsplit

import nh3
from markupsafe import Markup

ALLOWED_URL_SCHEMES = frozenset({"http", "https"})

_BLOCK_TAG = re.compile(
    r"</?(p|div|ul|ol|li|h[1-6]|blockquote|pre|table|hr|figure|section)[\s>/]", re.IGNORECASE
)
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_CONTROL_CHARS = re.compile(r"[\x00-\x20\x7f]")


def clean_text(value: str | None) -> str:
    """Plain text: tags and their script/style bodies removed, whitespace collapsed."""
    if not value:
        return ""
    stripped = nh3.clean(str(value), tags=set())
    return str(Markup(stripped).striptags())


def clean_url(value: str | None) -> str:
    """Return ``value`` if it is an absolute http(s) URL, otherwise an empty string."""
    if not value:
        return ""
    url = str(value).strip()
    if _CONTROL_CHARS.search(url):
        return ""
    parts = urlsplit(url)
    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES or not parts.netloc:
        return ""
    return url


def clean_rich_text(value: str | None) -> str:
    """Rich text limited to the HTML allow-list; scripts, handlers and styles are dropped."""
    if not value:
        return ""
    return nh3.clean(str(value))


def autop(html: str) -> Markup:
    """Turn blank-line separated blocks into paragraphs and lone newlines into ``<br>``.

    ``html`` must already be filtered by :func:`clean_rich_text`.
    """
    if not html:
        return Markup("")
    text = html.replace("\r\n", "\n").replace("\r", "\n").strip()
    blocks = []
    for block in _PARAGRAPH_BREAK.split(text):
        block = block.strip()
        if not block:
            continue
        # inline text ahead of the first block tag gets its own paragraph
        match = _BLOCK_TAG.search(block)
        lead = block if match is None else block[: match.start()].strip()
        if lead:
            blocks.append("<p>" + lead.replace("\n", "<br>\n") + "</p>")
        if match is not None:
            blocks.append(block[match.start() :])
    return Markup("\n".join(blocks))
