"""
Name similarity for alias detection.

Scores live in [0.0, 1.0]:
- 1.0 for case-insensitive equality
- 0.9 when every token of the shorter name appears in the longer one
  ("john" vs "John Smith")
- otherwise the larger of the character-level SequenceMatcher ratio and
  the token Jaccard overlap
"""

import re
from difflib import SequenceMatcher

from tx.core.constants import TOKEN_SUBSET_SIMILARITY

TOKEN_PATTERN = re.compile(r"\w+")


def tokenize(value: str) -> set[str]:
    """Lowercased word tokens of a name."""
    return set(TOKEN_PATTERN.findall(value.casefold()))


def similarity(a: str, b: str) -> float:
    """
    Score how likely two names denote the same entity.

    Args:
        a: First name
        b: Second name

    Returns:
        Similarity score between 0.0 and 1.0
    """
    left = a.strip().casefold()
    right = b.strip().casefold()

    if not left or not right:
        return 0.0

    if left == right:
        return 1.0

    tokens_left = tokenize(left)
    tokens_right = tokenize(right)

    if tokens_left and tokens_right:
        shorter, longer = sorted((tokens_left, tokens_right), key=len)
        if shorter <= longer:
            return TOKEN_SUBSET_SIMILARITY
        jaccard = len(tokens_left & tokens_right) / len(tokens_left | tokens_right)
    else:
        jaccard = 0.0

    ratio = SequenceMatcher(None, left, right).ratio()
    return max(ratio, jaccard)
