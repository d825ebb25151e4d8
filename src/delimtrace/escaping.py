"""Field escaping for delimited trace records.

Fields are wrapped in double quotes and embedded quotes are doubled, the
usual CSV convention. Delimiters and line breaks inside a field are left
as they are; readers are expected to honour the quoting.
"""

from __future__ import annotations

from collections.abc import Iterable

QUOTE = '"'


def _escape_into(text: str | None, parts: list[str]) -> None:
    """Append ``text`` to ``parts`` with every quote doubled."""
    if not text:
        return

    last = 0
    index = text.find(QUOTE, last)
    while index != -1:
        parts.append(text[last:index])
        parts.append(QUOTE * 2)
        last = index + 1
        index = text.find(QUOTE, last)

    parts.append(text[last:])


def escape_field(text: str | None) -> str:
    """Quote a single field.

    Args:
        text: Field content.

    Returns:
        The quoted field, or an empty string when ``text`` is None or empty.

    Example:
        >>> escape_field('say "hi" now')
        '"say ""hi"" now"'
        >>> escape_field("")
        ''
    """
    if not text:
        return ""

    parts = [QUOTE]
    _escape_into(text, parts)
    parts.append(QUOTE)
    return "".join(parts)


def escape_stack(items: Iterable[object]) -> str:
    """Render a sequence of values as one quoted field.

    Elements are stringified, escaped and joined with ``", "`` inside a
    single pair of quotes. None elements render as empty text.

    Example:
        >>> escape_stack(["Op1", 'say "x" now'])
        '"Op1, say ""x"" now"'
    """
    parts = [QUOTE]
    first = True
    for item in items:
        if not first:
            parts.append(", ")
        first = False
        _escape_into(None if item is None else str(item), parts)

    parts.append(QUOTE)
    return "".join(parts)
