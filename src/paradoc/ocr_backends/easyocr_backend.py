# paradoc/ocr_backends/easyocr_backend.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
import logging
import threading
import numpy as np
from PIL import Image

import easyocr

from .base import BaseOCREngine

logger = logging.getLogger("paradoc")

# EasyOCR uses ISO 639-1 style codes, tesseract-style hints are mapped back
_EASYOCR_LANG_MAP = {
    "eng": "en",
    "vie": "vi",
    "fra": "fr",
    "deu": "de",
    "spa": "es",
    "ita": "it",
    "por": "pt",
    "nld": "nl",
    "rus": "ru",
    "jpn": "ja",
    "kor": "ko",
    "chi_sim": "ch_sim",
}


# -----------------------------
# Helpers
# -----------------------------

def _as_bool(x, default=True) -> bool:
    if isinstance(x, bool):
        return x
    if isinstance(x, str):
        s = x.strip().lower()
        if s in ("true", "1", "yes", "y", "on"):
            return True
        if s in ("false", "0", "no", "n", "off"):
            return False
    return default


def _to_easyocr_langs(langs: Optional[List[str]]) -> Tuple[str, ...]:
    out: List[str] = []
    for lang in langs or []:
        code = _EASYOCR_LANG_MAP.get(str(lang).strip().lower(), str(lang).strip().lower())
        if code and code not in out:
            out.append(code)
    return tuple(out)


def _ensure_rgb_uint8(img: Any) -> np.ndarray:
    """Accept PIL.Image | np.ndarray | path-like; return RGB uint8 numpy."""
    if isinstance(img, Image.Image):
        return np.array(img.convert("RGB"))
    if isinstance(img, np.ndarray):
        arr = img
        if arr.dtype != np.uint8:
            # Rescale if it looks like float [0..1]
            if np.issubdtype(arr.dtype, np.floating):
                arr = np.clip(arr * (255.0 if arr.max() <= 1.0 else 1.0), 0, 255).astype(np.uint8)
            else:
                arr = arr.astype(np.uint8, copy=False)
        if arr.ndim == 2:  # grayscale
            return np.stack([arr, arr, arr], axis=-1)
        if arr.ndim == 3 and arr.shape[-1] >= 3:
            return arr[..., :3]
        return np.array(Image.fromarray(arr).convert("RGB"))
    # Treat as path-like
    with Image.open(img) as im:
        return np.array(im.convert("RGB"))


def _torch_cuda_available() -> bool:
    try:
        import torch
        return bool(torch.cuda.is_available())
    except ImportError:
        return False


# -----------------------------
# Backend
# -----------------------------

class EasyOCREngine(BaseOCREngine):
    """
    EasyOCR adapter.

    One easyocr.Reader is built per distinct language set and reused.

    Supported kwargs (all optional):
      - languages / lang: list[str] | str, used when a task carries no hints (default ["en"])
      - gpu / use_gpu: bool (defaults to True if CUDA is available, else False)
      - model_storage_directory: str
      - download_enabled: bool (default True)
      - paragraph: bool (default True)
    """

    def __init__(self, **kwargs: Dict[str, Any]):
        k = dict(kwargs)
        langs = k.pop("languages", None) or k.pop("lang", None)
        if isinstance(langs, str):
            langs = [langs]
        self.default_langs = _to_easyocr_langs(langs) or ("en",)

        want_gpu = _as_bool(k.pop("gpu", k.pop("use_gpu", True)), True)
        self.use_gpu = bool(want_gpu and _torch_cuda_available())
        self.model_dir = k.pop("model_storage_directory", None)
        self.download_enabled = _as_bool(k.pop("download_enabled", True), True)
        self.paragraph = _as_bool(k.pop("paragraph", True), True)

        self._readers: Dict[Tuple[str, ...], Any] = {}
        self._lock = threading.Lock()

    def _reader_for(self, langs: Tuple[str, ...]):
        with self._lock:
            reader = self._readers.get(langs)
            if reader is None:
                logger.info("Initializing EasyOCR reader, languages, %s, gpu, %s", list(langs), self.use_gpu)
                reader = easyocr.Reader(
                    list(langs),
                    gpu=self.use_gpu,
                    model_storage_directory=self.model_dir,
                    download_enabled=self.download_enabled,
                    verbose=False,
                )
                self._readers[langs] = reader
            return reader

    def recognize(self, image: Any, language_hints: List[str], timeout: Optional[float] = None) -> str:
        reader = self._reader_for(_to_easyocr_langs(language_hints) or self.default_langs)
        lines = reader.readtext(_ensure_rgb_uint8(image), detail=0, paragraph=self.paragraph)
        if isinstance(lines, (list, tuple)):
            return "\n".join(str(x) for x in lines if x)
        return str(lines) if lines else ""
