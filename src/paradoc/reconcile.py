# src/paradoc/reconcile.py
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

from .models import OCRResult, Page, PageImage, PageSet, QualityVerdict

logger = logging.getLogger("paradoc")


def should_replace(original_text: str, ocr_text: str) -> bool:
    """OCR text only wins when it is strictly longer than what we already have."""
    return len((ocr_text or "").strip()) > len((original_text or "").strip())


def reconcile(
    original: PageSet,
    ocr_results: Iterable[OCRResult],
    verdicts: Optional[Iterable[QualityVerdict]] = None,
) -> PageSet:
    """
    Merge OCR output into the extracted pages.

    Only pages flagged insufficient are candidates. When `verdicts` is None,
    every page that has a result is a candidate. Failed results never
    replace anything. Page range and order of `original` are preserved.
    """
    flagged = None
    if verdicts is not None:
        flagged = {v.page_number for v in verdicts if not v.sufficient}

    pages: List[Page] = list(original)
    for result in sorted(ocr_results, key=lambda r: r.page_number):
        num = result.page_number
        if num not in original:
            logger.warning("Ignoring OCR result for page %s, document has %d page(s)", num, len(original))
            continue
        if flagged is not None and num not in flagged:
            continue
        if not result.succeeded:
            logger.info("Keeping extracted text for pg %d, OCR failed, %s", num, result.error_reason)
            continue

        current = original.get(num).text
        if should_replace(current, result.text):
            logger.info(
                "Replacing pg %d content with OCR result (%d -> %d chars)",
                num, len(current.strip()), len(result.text.strip()),
            )
            page = pages[num - 1]
            pages[num - 1] = Page(num, result.text, page.image, page.source_metadata)
        else:
            logger.debug("OCR did not improve pg %d, keeping extracted text", num)
    return PageSet(pages)


def build_from_results(
    ocr_results: Iterable[OCRResult],
    page_count: int,
    image_for: Optional[Callable[[int], PageImage]] = None,
) -> PageSet:
    """
    PageSet for a document that had no text layer at all.
    Every page comes from OCR; failed pages are left empty.
    """
    by_page = {r.page_number: r for r in ocr_results if 1 <= r.page_number <= page_count}
    pages: List[Page] = []
    for num in range(1, page_count + 1):
        r = by_page.get(num)
        text = r.text if r is not None and r.succeeded else ""
        pages.append(Page(num, text, image_for(num) if image_for else None))
    return PageSet(pages)
