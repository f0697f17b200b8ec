"""Text helpers for consumers rendering the dropdown and the quota countdown."""

import re


def highlight_segments(text: str, query: str) -> list[tuple[str, bool]]:
    """Split ``text`` into ``(fragment, matched)`` pairs for ``query``.

    Matching is case-insensitive and the query is taken literally. Returns a
    single unmatched fragment when there is nothing to highlight.
    """
    needle = query.strip()
    if not needle or not text:
        return [(text, False)]
    segments = []
    pos = 0
    for match in re.finditer(re.escape(needle), text, flags=re.IGNORECASE):
        if match.start() > pos:
            segments.append((text[pos : match.start()], False))
        segments.append((match.group(0), True))
        pos = match.end()
    if pos < len(text):
        segments.append((text[pos:], False))
    return segments


def format_countdown(seconds: int) -> str:
    """Format seconds as m:ss."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"
