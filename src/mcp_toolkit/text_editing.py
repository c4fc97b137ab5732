"""Positional text editing over in-memory strings.

Every function here is pure: callers read the whole file, transform the text
and write the whole result back. Offsets are character offsets into the
decoded text.

Key behaviors:
- Insertion past the end pads the gap with spaces
- Length-preserving deletion and replacement pad or truncate with spaces
- Length-preserving regex replacement is applied from the last match backward
- Marker-based replacement reports not-found cases instead of raising
"""

import re
from dataclasses import dataclass

from mcp_toolkit.exceptions import NoMatchesError


@dataclass(frozen=True)
class MatchSpan:
    """One regex match inside a text buffer."""

    position: int
    length: int
    value: str

    @property
    def end(self) -> int:
        return self.position + self.length

    def __str__(self) -> str:
        return f"Position: {self.position}, Length: {self.length}, Value: {self.value}"


@dataclass(frozen=True)
class MarkerReplacement:
    """Outcome of :func:`replace_between_markers`.

    Exactly one of ``text`` and ``failure`` is set. ``failure`` holds a
    human-readable reason such as ``"Start marker not found"``.
    """

    text: str | None = None
    failure: str | None = None
    start: int | None = None
    end: int | None = None

    @property
    def found(self) -> bool:
        return self.failure is None


# $1, ${name}, $& and $$ in replacement text; backslashes stay literal
_REPLACEMENT_REFERENCE = re.compile(r"\$(?:(\d+)|\{(\w+)\}|(&)|(\$))")

SIGNATURE_NOT_FOUND = "Function signature not found"
START_MARKER_NOT_FOUND = "Start marker not found"
END_MARKER_NOT_FOUND = "End marker not found"


def insert_at(text: str, position: int, insertion: str) -> str:
    """Insert ``insertion`` into ``text`` at ``position``.

    Args:
        text: Current buffer
        position: Character offset, may exceed ``len(text)``
        insertion: Non-empty text to insert

    Returns:
        New buffer

    Raises:
        ValueError: If position is negative or insertion is empty

    Note:
        At offset 0 the insertion replaces the head of the buffer rather than
        being prepended, and is a no-op when the buffer already starts with
        it. Repeated head writes of the same text are therefore idempotent.

    Example:
        >>> insert_at("Hello World!", 6, "Beautiful ")
        'Hello Beautiful World!'
        >>> insert_at("Short", 10, "End")
        'Short     End'
    """
    if position < 0:
        raise ValueError("Position cannot be negative")
    if not insertion:
        raise ValueError("Content to insert cannot be empty")

    if position > len(text):
        return text.ljust(position) + insertion

    if position == 0:
        if text.startswith(insertion):
            return text
        return insertion + text[len(insertion) :]

    return text[:position] + insertion + text[position:]


def effective_delete_length(text: str, position: int, length: int) -> int:
    """Number of characters :func:`delete_at` will actually touch."""
    return min(length, len(text) - position)


def delete_at(text: str, position: int, length: int, preserve_length: bool = False) -> str:
    """Delete up to ``length`` characters starting at ``position``.

    The span is clamped to the end of the buffer. With ``preserve_length``
    the span is overwritten with spaces instead of removed.

    Raises:
        ValueError: If position is negative or past the end, or length is not positive

    Example:
        >>> delete_at("Hello World!", 6, 5)
        'Hello !'
        >>> delete_at("Hello World!", 6, 5, preserve_length=True)
        'Hello      !'
    """
    if position < 0:
        raise ValueError("Position cannot be negative")
    if length <= 0:
        raise ValueError("Length must be greater than zero")
    if position >= len(text):
        raise ValueError(f"Position {position} is beyond the end of the text ({len(text)} characters)")

    effective = effective_delete_length(text, position, length)
    filler = " " * effective if preserve_length else ""
    return text[:position] + filler + text[position + effective :]


def search_positions(text: str, pattern: str) -> list[MatchSpan]:
    """Return every non-overlapping match of ``pattern`` in scan order.

    Invalid patterns raise :class:`re.error` unchanged.

    Example:
        >>> [m.position for m in search_positions("Hello World! Hello Again!", "Hello")]
        [0, 13]
    """
    return [
        MatchSpan(position=m.start(), length=m.end() - m.start(), value=m.group(0))
        for m in re.finditer(pattern, text)
    ]


def fit_to_length(replacement: str, length: int) -> str:
    """Right-pad ``replacement`` with spaces or truncate it to ``length``."""
    return replacement.ljust(length)[:length]


def expand_replacement(match: re.Match, replacement: str) -> str:
    """Expand group references in ``replacement`` for one match.

    ``$n`` and ``${name}`` insert a group, ``$&`` the whole match and ``$$`` a
    dollar sign. References to groups the pattern does not define are kept
    as written. Everything else, backslashes included, is copied literally.

    Example:
        >>> m = re.search(r"(?P<user>[a-z]+)@([a-z]+)", "bob@host")
        >>> expand_replacement(m, "${user} at $2")
        'bob at host'
    """

    def substitute(reference: re.Match) -> str:
        number, name, whole, dollar = reference.groups()
        if dollar:
            return "$"
        if whole:
            return match.group(0)
        group = number if number is not None else name
        key = int(group) if group.isdigit() else group
        try:
            return match.group(key) or ""
        except IndexError:
            return reference.group(0)

    return _REPLACEMENT_REFERENCE.sub(substitute, replacement)


def search_and_replace(
    text: str, pattern: str, replacement: str, preserve_length: bool = False
) -> tuple[str, int]:
    """Replace every match of ``pattern`` and return ``(new_text, match_count)``.

    In normal mode every match is replaced by ``replacement`` with its group
    references expanded (see :func:`expand_replacement`). In length-preserving
    mode each match is overwritten by ``replacement`` padded or truncated to the match length,
    starting from the last match so earlier offsets stay valid. The
    replacement text is used literally in that mode.

    Raises:
        NoMatchesError: If the pattern matches nothing
        re.error: If the pattern is invalid
    """
    compiled = re.compile(pattern)
    matches = list(compiled.finditer(text))
    if not matches:
        raise NoMatchesError(pattern)

    if not preserve_length:
        return compiled.sub(lambda m: expand_replacement(m, replacement), text), len(matches)

    result = text
    for match in reversed(matches):
        start, end = match.span()
        result = result[:start] + fit_to_length(replacement, end - start) + result[end:]
    return result, len(matches)


def replace_between_markers(
    text: str,
    signature: str,
    start_markers: list[str],
    end_markers: list[str],
    new_code: str,
) -> MarkerReplacement:
    """Replace the block surrounding ``signature`` with ``new_code``.

    The block starts at the closest start marker found at or before the
    signature offset and ends after the closest end marker found at or after
    it. Missing signature or markers produce a failed result, never an
    exception.

    Example:
        >>> src = "a\\n// start\\nvoid f() {}\\n// end\\nb"
        >>> replace_between_markers(src, "void f()", ["// start"], ["// end"], "X").text
        'a\\nX\\nb'
    """
    signature_position = text.find(signature) if signature else -1
    if signature_position < 0:
        return MarkerReplacement(failure=SIGNATURE_NOT_FOUND)

    start = -1
    for marker in start_markers:
        if not marker:
            continue
        # A start marker may begin at the signature itself
        index = text.rfind(marker, 0, signature_position + len(marker))
        if index > start:
            start = index
    if start < 0:
        return MarkerReplacement(failure=START_MARKER_NOT_FOUND)

    end = -1
    end_marker_length = 0
    for marker in end_markers:
        if not marker:
            continue
        index = text.find(marker, signature_position)
        if index >= 0 and (end < 0 or index < end):
            end = index
            end_marker_length = len(marker)
    if end < 0:
        return MarkerReplacement(failure=END_MARKER_NOT_FOUND)

    block_end = end + end_marker_length
    return MarkerReplacement(
        text=text[:start] + new_code + text[block_end:],
        start=start,
        end=block_end,
    )
