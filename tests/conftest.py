import threading
import time

import pytest

from paradoc import tokenizer
from paradoc.config import ParadocConfig
from paradoc.models import ExtractedPage
from paradoc.pdf_processor import PageRenderer, TextExtractionBackend


@pytest.fixture(autouse=True)
def offline_tokenizer(monkeypatch):
    """Keep tests off the network, tiktoken downloads its BPE files on first use."""
    monkeypatch.setattr(tokenizer, "_get_encoding", lambda: None)


class StubExtractor(TextExtractionBackend):
    def __init__(self, texts=None, metadata=None, error=None):
        self.texts = list(texts or [])
        self.metadata = dict(metadata or {})
        self.error = error
        self.calls = 0

    def extract(self, source):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [ExtractedPage(i + 1, t, dict(self.metadata)) for i, t in enumerate(self.texts)]


class StubRenderer(PageRenderer):
    """Renders page n to the string "image-n"."""

    def __init__(self, pages=0, fail_pages=(), count_error=None):
        self.pages = pages
        self.fail_pages = set(fail_pages)
        self.count_error = count_error
        self.rendered = []
        self._lock = threading.Lock()

    def page_count(self, source):
        if self.count_error is not None:
            raise self.count_error
        return self.pages

    def render(self, source, page_number):
        with self._lock:
            self.rendered.append(page_number)
        if page_number in self.fail_pages:
            raise IOError(f"cannot rasterize page {page_number}")
        return f"image-{page_number}"


class StubOCR:
    """
    Deterministic OCR backend.
    Returns texts[n] for page n, raises for pages in fail_pages, sleeps delays[n].
    Records the highest number of concurrent recognize() calls.
    """

    def __init__(self, texts=None, fail_pages=(), delays=None):
        self.texts = dict(texts or {})
        self.fail_pages = set(fail_pages)
        self.delays = dict(delays or {})
        self.calls = []
        self.hints = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def recognize(self, image, language_hints):
        page = int(str(image).rsplit("-", 1)[1])
        with self._lock:
            self.calls.append(page)
            self.hints.append(list(language_hints))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(page)
            if delay:
                time.sleep(delay)
            if page in self.fail_pages:
                raise RuntimeError(f"unreadable image on page {page}")
            return self.texts.get(page, "")
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def config():
    return ParadocConfig(threshold=50, languages=["eng"], max_concurrency=2, per_task_timeout=5)


LONG_TEXT = "Lorem ipsum dolor sit amet, consectetur adipiscing elit. " * 4
