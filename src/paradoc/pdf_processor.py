# src/paradoc/pdf_processor.py
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

import fitz  # PyMuPDF
from PIL import Image

from .models import ExtractedPage

logger = logging.getLogger("paradoc")

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")

# PyMuPDF is not thread safe, OCR workers take turns rendering
_FITZ_LOCK = threading.Lock()


# --- Step 1, interfaces ---
class TextExtractionBackend(ABC):
    """
    Parses a document into ordered page/text pairs.
    """

    @abstractmethod
    def extract(self, source: Any) -> List[ExtractedPage]:
        """
        Return one ExtractedPage per page, 1-based.
        An empty list means the document has no text layer at all.
        Raises when the document cannot be parsed.
        """
        raise NotImplementedError


class PageRenderer(ABC):
    """
    Rasterizes single pages on demand.
    """

    @abstractmethod
    def page_count(self, source: Any) -> int:
        raise NotImplementedError

    @abstractmethod
    def render(self, source: Any, page_number: int) -> Any:
        """Render a 1-based page to an image the OCR backend accepts."""
        raise NotImplementedError


# --- Step 2, concrete implementation with PyMuPDF ---
class PyMuPDFProcessor(TextExtractionBackend, PageRenderer):
    """PDF text extraction and page rendering with PyMuPDF."""

    def __init__(self, dpi: int = 200):
        self.dpi = dpi

    @staticmethod
    def _is_image(path: Path) -> bool:
        return path.suffix.lower() in IMAGE_SUFFIXES

    @staticmethod
    def _doc_metadata(doc) -> Dict[str, Any]:
        meta = doc.metadata or {}
        return {k: v for k, v in meta.items() if k in ("title", "author", "subject", "creator") and v}

    def extract(self, source: Any) -> List[ExtractedPage]:
        """
        Extract text using layout aware blocks, page by page.
        This is usually more reliable for complex PDFs than the plain text mode.
        """
        path = Path(source)
        if self._is_image(path):
            # no text layer, the whole file goes to OCR
            return []

        pages: List[ExtractedPage] = []
        with _FITZ_LOCK, fitz.open(path) as doc:
            meta = self._doc_metadata(doc)
            for idx, page in enumerate(doc):
                # sort=True gives reading order
                blocks = page.get_text("blocks", sort=True)
                # b[6] == 0 means text block
                page_text = [b[4] for b in blocks if len(b) > 6 and b[6] == 0]
                pages.append(ExtractedPage(idx + 1, "\n".join(page_text), dict(meta)))

        if not any(p.text.strip() for p in pages):
            logger.debug("Native text extractor returned empty for %s", path)
            return []
        return pages

    def page_count(self, source: Any) -> int:
        path = Path(source)
        if self._is_image(path):
            return 1
        with _FITZ_LOCK, fitz.open(path) as doc:
            return len(doc)

    def render(self, source: Any, page_number: int) -> Image.Image:
        path = Path(source)
        if self._is_image(path):
            if page_number != 1:
                raise IndexError(f"Image sources have a single page, got page {page_number}")
            with Image.open(path) as im:
                return im.convert("RGB")

        # Prefer matrix-based scaling (consistent across PyMuPDF versions)
        zoom = self.dpi / 72.0
        with _FITZ_LOCK, fitz.open(path) as doc:
            page = doc.load_page(page_number - 1)
            pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
            return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)


# --- Step 3, factory ---
def get_pdf_processor(engine_name: str = "pymupdf", **kwargs) -> PyMuPDFProcessor:
    """
    Create a PDF processor by name.
    """
    name = (engine_name or "").lower()
    if name == "pymupdf":
        return PyMuPDFProcessor(**kwargs)
    raise ValueError(f"Unknown PDF engine, '{engine_name}'. Supported engines, ['pymupdf']")
