# paradoc/ocr_backends/base.py
from typing import Any, List, Optional
from abc import ABC, abstractmethod


class BaseOCREngine(ABC):
    @abstractmethod
    def recognize(self, image: Any, language_hints: List[str], timeout: Optional[float] = None) -> str:
        """
        Return the text found on one rendered page.
        Raise on unreadable images or unsupported languages; the caller
        records that as a failed page.
        """
        pass
