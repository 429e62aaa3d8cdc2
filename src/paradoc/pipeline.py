# src/paradoc/pipeline.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .assembler import DocumentAssembler
from .config import ParadocConfig
from .dispatcher import OCRDispatcher
from .exceptions import DocumentProcessingError, ExtractionFailure, WholeDocumentOCRFailure
from .models import (
    ConversionResult,
    Document,
    DocumentMetadata,
    ExtractedPage,
    OCRTask,
    PageImage,
    PageSet,
)
from .ocr_backends import load_backend
from .pdf_processor import PageRenderer, TextExtractionBackend, get_pdf_processor
from .quality import classify, insufficient_pages
from .reconcile import build_from_results, reconcile
from .utils import source_name

logger = logging.getLogger("paradoc")

MetadataLike = Union[DocumentMetadata, Dict[str, Any], None]


class DocumentPipeline:
    """
    Converts one document per call into a Document.

    1. extract the text layer,
    2. classify pages against the character threshold,
    3. OCR only the insufficient pages (or every page when there is no text layer),
    4. reconcile, then assemble and validate.

    Holds no per-document state between calls.
    """

    def __init__(
        self,
        extractor: TextExtractionBackend,
        renderer: PageRenderer,
        backend: Any,
        config: Optional[ParadocConfig] = None,
        assembler: Optional[DocumentAssembler] = None,
    ):
        self.config = config or ParadocConfig()
        self.extractor = extractor
        self.renderer = renderer
        self.dispatcher = OCRDispatcher(
            backend,
            max_concurrency=self.config.max_concurrency,
            per_task_timeout=self.config.per_task_timeout,
            show_progress=self.config.show_progress,
        )
        self.assembler = assembler or DocumentAssembler()

    @classmethod
    def from_config(cls, config: Optional[ParadocConfig] = None) -> "DocumentPipeline":
        """PyMuPDF for extraction and rendering, OCR backend picked by name."""
        config = config or ParadocConfig()
        processor = get_pdf_processor("pymupdf", dpi=config.dpi)
        backend_kwargs = dict(config.ocr_backend_kwargs or {})
        if "languages" not in backend_kwargs and "lang" not in backend_kwargs:
            backend_kwargs["languages"] = list(config.languages)
        backend = load_backend(config.ocr_backend, **backend_kwargs)
        return cls(processor, processor, backend, config)

    # -----------------------------
    # Public entry points
    # -----------------------------
    def process(
        self,
        source: Any,
        metadata: MetadataLike = None,
        *,
        threshold: Optional[int] = None,
        languages: Optional[Sequence[str]] = None,
    ) -> Document:
        """
        Raises ExtractionFailure, WholeDocumentOCRFailure or EmptyContentError.
        Per-page OCR failures are absorbed.
        """
        if not isinstance(metadata, DocumentMetadata):
            metadata = DocumentMetadata.from_dict(metadata)
        name = source_name(source)
        threshold = self.config.threshold if threshold is None else threshold
        langs = list(languages or self.config.languages)

        logger.info("-- Working %s --", name)
        extracted = self._extract(source, name)

        if not extracted:
            logger.info("No text content found for %s. Will attempt OCR parse.", name)
            page_set, ocr_pages = self._ocr_whole_document(source, name, langs)
        else:
            page_set, ocr_pages = self._ocr_low_content_pages(source, name, extracted, threshold, langs)

        for page in page_set:
            logger.debug("-- Parsing content from pg %d --", page.page_number)

        doc = self.assembler.assemble(page_set, metadata, source=source, ocr_page_numbers=ocr_pages)
        logger.info("[SUCCESS]: %s converted, %d page(s), %d word(s)", name, doc.page_count, doc.word_count)
        return doc

    def convert(self, source: Any, metadata: MetadataLike = None, **overrides: Any) -> ConversionResult:
        """Same as process() but reports document-level failures as a ConversionResult."""
        try:
            doc = self.process(source, metadata, **overrides)
        except DocumentProcessingError as e:
            logger.error("%s", e)
            return ConversionResult(success=False, reason=str(e))
        return ConversionResult(success=True, documents=[doc])

    # -----------------------------
    # Stages
    # -----------------------------
    def _extract(self, source: Any, name: str) -> List[ExtractedPage]:
        try:
            return list(self.extractor.extract(source))
        except Exception as e:
            logger.error("Text extraction failed for %s, %s", name, e)
            raise ExtractionFailure(name, f"{type(e).__name__}: {e}") from e

    def _page_image(self, source: Any):
        return lambda page_number: PageImage(source, page_number, self.renderer)

    def _ocr_low_content_pages(
        self,
        source: Any,
        name: str,
        extracted: List[ExtractedPage],
        threshold: int,
        langs: List[str],
    ) -> Tuple[PageSet, List[int]]:
        try:
            page_count = int(self.renderer.page_count(source))
        except Exception as e:
            logger.warning("Could not count pages of %s, using extracted pages only, %s", name, e)
            page_count = 0

        try:
            page_set = PageSet.from_extracted(extracted, self._page_image(source), page_count)
        except ValueError as e:
            raise ExtractionFailure(name, str(e)) from e

        verdicts = classify(page_set, threshold)
        low = insufficient_pages(verdicts)
        if not low:
            logger.info("All %d page(s) of %s have at least %d chars, no OCR needed", len(page_set), name, threshold)
            return page_set, []

        logger.info(
            "Found %d page(s) with minimal text (< %d chars). Attempting OCR on pages, %s",
            len(low), threshold, ", ".join(str(n) for n in low),
        )
        tasks = [OCRTask(n, page_set.get(n).image, list(langs)) for n in low]
        results = sorted(self.dispatcher.dispatch(tasks), key=lambda r: r.page_number)

        merged = reconcile(page_set, results, verdicts)
        replaced = [n for n in low if merged.get(n).text != page_set.get(n).text]
        return merged, replaced

    def _ocr_whole_document(self, source: Any, name: str, langs: List[str]) -> Tuple[PageSet, List[int]]:
        try:
            count = int(self.renderer.page_count(source))
        except Exception as e:
            logger.error("Failed to open or count pages of %s, %s", name, e)
            raise WholeDocumentOCRFailure(name, f"Cannot enumerate pages, {e}") from e
        if count < 1:
            raise WholeDocumentOCRFailure(name, "Document has no pages")

        image_for = self._page_image(source)
        tasks = [OCRTask(n, image_for(n), list(langs)) for n in range(1, count + 1)]
        results = sorted(self.dispatcher.dispatch(tasks), key=lambda r: r.page_number)

        succeeded = [r for r in results if r.succeeded]
        if not succeeded:
            first_error = results[0].error_reason if results else "no results"
            raise WholeDocumentOCRFailure(name, f"OCR failed on all {count} page(s), {first_error}")

        page_set = build_from_results(results, count, image_for)
        return page_set, [r.page_number for r in succeeded if r.text]


def convert_document(
    source: Any,
    config: Optional[ParadocConfig] = None,
    metadata: MetadataLike = None,
) -> ConversionResult:
    """One-shot helper, builds a PyMuPDF + configured-backend pipeline."""
    return DocumentPipeline.from_config(config).convert(source, metadata)
