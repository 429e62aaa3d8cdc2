# paradoc/ocr_backends/tesseract_backend.py
from __future__ import annotations

import logging
import os
import platform
import re
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
from PIL import Image
import pytesseract as pt

from .base import BaseOCREngine

logger = logging.getLogger("paradoc")

_KNOWN_LOCATIONS = {
    "Windows": (
        r"C:\Program Files\Tesseract-OCR\tesseract.exe",
        r"C:\Program Files (x86)\Tesseract-OCR\tesseract.exe",
    ),
    "Darwin": ("/opt/homebrew/bin/tesseract", "/usr/local/bin/tesseract"),
}
_DEFAULT_LOCATIONS = ("/usr/bin/tesseract", "/usr/local/bin/tesseract", "/snap/bin/tesseract")

# ISO 639-1 codes to tesseract traineddata names
_TESS_LANG_MAP = {
    "en": "eng",
    "vi": "vie",
    "fr": "fra",
    "de": "deu",
    "es": "spa",
    "it": "ita",
    "pt": "por",
    "nl": "nld",
    "ru": "rus",
    "ja": "jpn",
    "ko": "kor",
    "zh": "chi_sim",
}


def _int_option(value: Any, default: int) -> int:
    """Lenient int parsing for values that arrive from CLI strings like '6,'."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    match = re.search(r"-?\d+", str(value if value is not None else ""))
    return int(match.group()) if match else default


def find_tesseract_binary() -> Optional[str]:
    """TESSERACT_CMD, then PATH, then the usual install locations for this OS."""
    override = os.getenv("TESSERACT_CMD")
    if override and Path(override).exists():
        return override

    on_path = shutil.which("tesseract")
    if on_path:
        return on_path

    for candidate in _KNOWN_LOCATIONS.get(platform.system(), _DEFAULT_LOCATIONS):
        if Path(candidate).exists():
            return candidate
    return None


def to_tesseract_lang(langs: Optional[List[str]], default: str = "eng") -> str:
    """Join language codes the way tesseract expects them, e.g. "eng+vie". Order is kept."""
    if isinstance(langs, str):
        langs = [s for s in re.split(r"[+,\s]+", langs) if s]
    codes: List[str] = []
    for lang in langs or []:
        name = str(lang).strip()
        code = _TESS_LANG_MAP.get(name.lower(), name)
        if code and code not in codes:
            codes.append(code)
    return "+".join(codes) or default


def build_tesseract_config(oem: int = 3, psm: int = 3,
                           preserve_interword_spaces: bool = True,
                           extra_config: str = "") -> str:
    parts = [f"--oem {oem}", f"--psm {psm}"]
    if preserve_interword_spaces:
        parts.append("-c preserve_interword_spaces=1")
    if extra_config:
        parts.append(extra_config)
    return " ".join(parts)


def _as_pil(image: Any) -> Image.Image:
    if isinstance(image, Image.Image):
        return image
    if isinstance(image, np.ndarray):
        if image.ndim == 3 and image.shape[-1] > 3:
            image = image[..., :3]
        return Image.fromarray(image)
    return Image.open(image).convert("RGB")


class TesseractOCREngine(BaseOCREngine):
    """
    OCR through the tesseract binary via pytesseract.

    Options (all optional):
      - languages / lang: list or "+"-joined string, used when a task has no hints
      - tesseract_cmd: explicit path to the binary
      - tessdata_prefix: directory holding the traineddata files
      - oem: engine mode, default 3
      - psm: page segmentation mode, default 3 (whole page)
      - preserve_interword_spaces: default True
      - extra_config: raw flags appended to the config string
    """

    def __init__(self, **kwargs: Any):
        opts: Dict[str, Any] = dict(kwargs)

        binary = opts.pop("tesseract_cmd", None) or find_tesseract_binary()
        if binary:
            if not os.path.exists(str(binary)):
                raise RuntimeError(f"Tesseract binary not found: {binary}")
            pt.pytesseract.tesseract_cmd = str(binary)
        else:
            logger.warning("Tesseract binary not located; relying on pytesseract's default lookup.")

        tessdata = opts.pop("tessdata_prefix", None)
        if tessdata:
            os.environ["TESSDATA_PREFIX"] = str(tessdata)

        self.default_lang = to_tesseract_lang(opts.pop("languages", None) or opts.pop("lang", None))
        self._config = build_tesseract_config(
            oem=_int_option(opts.pop("oem", 3), 3),
            psm=_int_option(opts.pop("psm", 3), 3),
            preserve_interword_spaces=bool(opts.pop("preserve_interword_spaces", True)),
            extra_config=str(opts.pop("extra_config", "")).strip(),
        )
        if opts:
            logger.debug(f"Ignoring unused tesseract options: {sorted(opts)}")

    def recognize(self, image: Any, language_hints: List[str], timeout: Optional[float] = None) -> str:
        lang = to_tesseract_lang(language_hints, default=self.default_lang)
        # timeout=0 means no limit; otherwise pytesseract kills the process and raises RuntimeError
        text = pt.image_to_string(_as_pil(image), lang=lang, config=self._config, timeout=timeout or 0)
        return text.strip()
