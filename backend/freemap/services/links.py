"""Rewrite bare social-media URLs into clickable links."""

from collections.abc import Iterable
from html import escape
from urllib.parse import urlparse


def linkify(message: str, hosts: Iterable[str]) -> str:
    """Wrap ``message`` in an anchor if it is a single URL on an allowed host.

    Applied once when a point is stored; the plain-text original is not kept.
    Anything that is not exactly one http(s) URL is returned unchanged.
    """
    url = message.strip()
    if not url or any(ch.isspace() for ch in url):
        return message

    try:
        parsed = urlparse(url)
        host = (parsed.hostname or "").lower()
    except ValueError:
        return message

    if parsed.scheme not in ("http", "https"):
        return message
    if host not in {h.lower() for h in hosts}:
        return message

    return f'<a href="{escape(url, quote=True)}" target="_blank">{escape(url)}</a>'
