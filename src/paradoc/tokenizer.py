# src/paradoc/tokenizer.py
from __future__ import annotations

import logging
import math
from functools import lru_cache

import tiktoken

logger = logging.getLogger("paradoc")

ENCODING_NAME = "cl100k_base"
# above this size exact tokenization is slow and the estimate is good enough
MAX_EXACT_BYTES = 10 * 1024
CHARS_PER_TOKEN_DIVISOR = 8


@lru_cache(maxsize=1)
def _get_encoding():
    try:
        return tiktoken.get_encoding(ENCODING_NAME)
    except Exception as e:
        logger.warning("Could not load %s encoding, using length based token estimate, %s", ENCODING_NAME, e)
        return None


def _length_estimate(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN_DIVISOR)


def estimate_tokens(text: str) -> int:
    """Approximate token count for `text`, not tied to any particular model."""
    if not text:
        return 0
    if len(text.encode("utf-8")) > MAX_EXACT_BYTES:
        return _length_estimate(text)
    enc = _get_encoding()
    if enc is None:
        return _length_estimate(text)
    return len(enc.encode(text, disallowed_special=()))
