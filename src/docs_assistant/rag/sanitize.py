"""
Reply post-processing for grounded answers.
"""

from __future__ import annotations

import re

SHORTENED_EXCERPT_MARKER = '"[excerpt shortened]"'

# Straight or curly double quotes; a quoted span never crosses a line break.
_QUOTED_SPAN = re.compile(r'"([^"\n]*)"|“([^”\n]*)”')


def shorten_long_quotes(text: str, max_chars: int) -> str:
    """
    Replace any double-quoted span longer than `max_chars` characters with a
    shortened-excerpt marker. Shorter quotes are left intact.
    """

    def _replace(match: re.Match) -> str:
        inner = match.group(1) if match.group(1) is not None else match.group(2)
        if len(inner) > max_chars:
            return SHORTENED_EXCERPT_MARKER
        return match.group(0)

    return _QUOTED_SPAN.sub(_replace, text)
