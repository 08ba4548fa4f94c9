"""Bullhorn search query helpers."""

import re

# Lucene special characters accepted by Bullhorn search/{entity}
_SPECIAL_CHARS = re.compile(r'([\\+\-!(){}\[\]^"~*?:/])')


def escape_query_value(value: str | None) -> str:
    """
    Escape a value for use inside a Bullhorn Lucene search query.

    Single special characters get a backslash prefix; the ``&&`` and ``||``
    operators are escaped as a unit.

    Args:
        value: Raw value (e.g. an email address)

    Returns:
        Escaped value, or "" for empty input
    """
    if not value:
        return ""

    escaped = _SPECIAL_CHARS.sub(r"\\\1", value)
    return escaped.replace("&&", "\\&&").replace("||", "\\||")


def quote_where_value(value: str) -> str:
    """Quote a value for a Bullhorn query/{entity} ``where`` clause."""
    return "'" + value.replace("'", "''") + "'"
