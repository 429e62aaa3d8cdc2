# paradoc/ocr_backends/__init__.py
from __future__ import annotations

import importlib
import logging
from typing import Any

from ..exceptions import BackendLoadError
from .base import BaseOCREngine

logger = logging.getLogger("paradoc")

BACKEND_ALIASES = {
    # Tesseract (pytesseract)
    "tess": "paradoc.ocr_backends.tesseract_backend.TesseractOCREngine",
    "tesseract": "paradoc.ocr_backends.tesseract_backend.TesseractOCREngine",
    "pytesseract": "paradoc.ocr_backends.tesseract_backend.TesseractOCREngine",
    # EasyOCR
    "easy": "paradoc.ocr_backends.easyocr_backend.EasyOCREngine",
    "easyocr": "paradoc.ocr_backends.easyocr_backend.EasyOCREngine",
}


def normalize_backend_alias(name: str) -> str:
    """
    Allow short aliases (case-insensitive) and module-only shorthands.
    Returns a fully qualified dotted path 'module.Class'.
    """
    original = (name or "").strip().strip('"\'')
    alias = original.lower()
    if alias in BACKEND_ALIASES:
        return BACKEND_ALIASES[alias]
    if alias.endswith(".tesseract_backend"):
        return BACKEND_ALIASES["tesseract"]
    if alias.endswith(".easyocr_backend"):
        return BACKEND_ALIASES["easyocr"]
    return original


def _import_obj(dotted: str):
    mod_path, _, attr = dotted.rpartition(".")
    if not mod_path or not attr:
        raise BackendLoadError(f"Invalid backend path, {dotted!r}, expected 'module.Class'")
    try:
        mod = importlib.import_module(mod_path)
    except ImportError as e:
        raise BackendLoadError(f"Cannot import backend module {mod_path!r}, {e}") from e
    try:
        return getattr(mod, attr)
    except AttributeError as e:
        raise BackendLoadError(f"Backend class not found, {dotted}") from e


def load_backend(name: str, **kwargs: Any) -> Any:
    """Resolve an alias or dotted path and build the backend."""
    dotted = normalize_backend_alias(name)
    engine_cls = _import_obj(dotted)
    try:
        engine = engine_cls(**kwargs)
    except Exception as e:
        logger.exception("Backend initialization failed for %s", dotted)
        raise BackendLoadError(f"Backend initialization failed for {dotted}, {e}") from e
    if not callable(getattr(engine, "recognize", None)):
        raise BackendLoadError(f"{dotted} has no recognize(image, language_hints) method")
    logger.info("OCR backend ready, %s", dotted)
    return engine


__all__ = ["BaseOCREngine", "BACKEND_ALIASES", "load_backend", "normalize_backend_alias"]
