"""Query string helpers for redirect URL handling."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlsplit


def get_query_parameter(url: str, name: str) -> str | None:
    """Return the value of the first ``name`` parameter in the URL's query string.

    Only the first occurrence counts: if it is empty the result is None even
    when a later occurrence has a value. Also returns None when the parameter
    is missing or the URL cannot be parsed. Never raises.
    """
    if not isinstance(url, str):
        return None

    try:
        query = urlsplit(url).query
        pairs = parse_qsl(query, keep_blank_values=True)
    except ValueError:
        return None

    for key, value in pairs:
        if key == name:
            return value or None
    return None
