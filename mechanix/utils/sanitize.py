"""Escaping of user-supplied free text before it is stored."""

import html


def sanitize_string(value):
    """Trim and HTML-escape a string so stored text cannot carry markup.

    Non-strings are returned unchanged.
    """
    if not isinstance(value, str):
        return value
    return html.escape(value.strip(), quote=True)


def sanitize_dict(data):
    """Recursively sanitize every string leaf of a JSON-like structure."""
    if isinstance(data, dict):
        return {key: sanitize_dict(value) for key, value in data.items()}
    if isinstance(data, list):
        return [sanitize_dict(item) for item in data]
    return sanitize_string(data)
