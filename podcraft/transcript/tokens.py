"""Word-count based token estimation.

This is a heuristic, not a tokenizer. Treat the numbers as a slightly
pessimistic estimate for English text, never as ground truth.
"""

import math
from typing import List, Optional

from ..constants import TOKENS_PER_WORD, TOKENS_PER_CHAR


def split_words(text: Optional[str]) -> List[str]:
    """Split text on any run of whitespace, dropping empty pieces."""
    if not text:
        return []
    return text.split()


def count_words(text: Optional[str]) -> int:
    return len(split_words(text))


def estimate_tokens(text: Optional[str]) -> int:
    """Estimate the token count of text (~1.3 tokens per word)."""
    if not text:
        return 0
    return math.ceil(count_words(text) * TOKENS_PER_WORD)


def tokens_to_words(max_tokens: int) -> int:
    """Approximate number of words that fit in max_tokens."""
    if max_tokens <= 0:
        return 0
    return math.floor(max_tokens / TOKENS_PER_WORD)


def tokens_to_chars(max_tokens: int) -> int:
    """Approximate number of characters that fit in max_tokens."""
    if max_tokens <= 0:
        return 0
    return math.floor(max_tokens / TOKENS_PER_CHAR)
