"""
Tests for the content quality classifier.
"""

import pytest

from paradoc.models import Page, PageSet
from paradoc.quality import classify, insufficient_pages


def _pages(*texts):
    return PageSet.from_pages(Page(i + 1, t) for i, t in enumerate(texts))


def test_threshold_is_inclusive():
    verdicts = classify(_pages("x" * 49, "x" * 50, "x" * 51), threshold=50)

    assert [v.sufficient for v in verdicts] == [False, True, True]
    assert [v.char_count for v in verdicts] == [49, 50, 51]


def test_whitespace_does_not_count():
    verdicts = classify(_pages("   \n\t" + "x" * 10 + "  \n"), threshold=11)

    assert verdicts[0].char_count == 10
    assert not verdicts[0].sufficient


def test_empty_page_is_insufficient():
    assert not classify(_pages(""), threshold=1)[0].sufficient


def test_empty_pageset_yields_no_verdicts():
    assert classify(PageSet.from_pages([]), threshold=50) == []


@pytest.mark.parametrize("threshold", [0, -5, 2.5, "50", True])
def test_threshold_must_be_positive_integer(threshold):
    with pytest.raises(ValueError):
        classify(_pages("abc"), threshold=threshold)


def test_insufficient_pages_lists_page_numbers_in_order():
    verdicts = classify(_pages("x" * 60, "", "short", "y" * 80), threshold=50)

    assert insufficient_pages(verdicts) == [2, 3]


def test_classification_is_recomputed_per_threshold():
    pages = _pages("x" * 30)

    assert not classify(pages, threshold=50)[0].sufficient
    assert classify(pages, threshold=20)[0].sufficient
