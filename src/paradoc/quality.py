# src/paradoc/quality.py
from __future__ import annotations

from typing import List

from .config import DEFAULT_THRESHOLD
from .models import PageSet, QualityVerdict


def classify(page_set: PageSet, threshold: int = DEFAULT_THRESHOLD) -> List[QualityVerdict]:
    """
    Tag every page as sufficient or not.
    A page is sufficient when its stripped text has at least `threshold` characters.
    """
    if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 1:
        raise ValueError(f"threshold must be a positive integer, got {threshold!r}")

    verdicts: List[QualityVerdict] = []
    for page in page_set:
        n = page.char_count
        verdicts.append(QualityVerdict(page.page_number, n >= threshold, n))
    return verdicts


def insufficient_pages(verdicts: List[QualityVerdict]) -> List[int]:
    return [v.page_number for v in verdicts if not v.sufficient]
