"""Added-line counter for a single hunk body."""

from __future__ import annotations


def count_added_lines(body: str | None) -> int:
    """Return the number of ``+`` lines in *body* that are not blank.

    A line counts when it starts with ``+`` and has at least one printable
    non-space character after it.  ``+`` on its own, or followed only by
    spaces/tabs, does not count.  Only the first ``+`` gates the line, so
    ``++x`` counts once.
    """
    if not body:
        return 0

    text = "\n" + body + "\n"
    length = len(text)
    count = 0
    starts_with_plus = False
    has_content = False

    i = 0
    while i < length:
        ch = text[i]
        if ch == "\n":
            if starts_with_plus and has_content:
                count += 1
            has_content = False
            # Decide for the next line, consuming its leading "+".
            if i + 1 < length and text[i + 1] == "+":
                starts_with_plus = True
                i += 1
            else:
                starts_with_plus = False
        elif starts_with_plus and ch > " ":
            has_content = True
        i += 1

    return count
