"""Cleanup of model output before it reaches students."""

import re

REASONING_TAGS = ("think", "thinking", "reasoning")

_CLOSED_BLOCK = re.compile(
    r"<(%s)>.*?</\1>" % "|".join(REASONING_TAGS), re.DOTALL | re.IGNORECASE
)
_OPEN_TAG = re.compile(r"<(?:%s)>" % "|".join(REASONING_TAGS), re.IGNORECASE)


def strip_think(text: str) -> str:
    """Drop <think>, <thinking> and <reasoning> blocks from an answer.

    A block left open by a truncated answer cuts the text at its tag.
    """
    cleaned = _CLOSED_BLOCK.sub("", text)
    dangling = _OPEN_TAG.search(cleaned)
    if dangling:
        cleaned = cleaned[: dangling.start()]
    return cleaned.strip()
