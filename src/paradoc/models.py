# src/paradoc/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from .utils import safe_fname


@dataclass(frozen=True)
class ExtractedPage:
    """One page as returned by a text extraction backend."""
    page_number: int
    text: str
    source_metadata: Dict[str, Any] = field(default_factory=dict)


class PageImage:
    """
    Lazy handle on the rasterized form of one page.
    Nothing is rendered until render() is called.
    """

    __slots__ = ("source", "page_number", "_renderer")

    def __init__(self, source: Any, page_number: int, renderer: Any):
        self.source = source
        self.page_number = page_number
        self._renderer = renderer

    def render(self) -> Any:
        return self._renderer.render(self.source, self.page_number)

    def __repr__(self) -> str:
        return f"PageImage(source={self.source!r}, page_number={self.page_number})"


@dataclass(frozen=True)
class Page:
    page_number: int
    text: str = ""
    image: Optional[PageImage] = None
    source_metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def char_count(self) -> int:
        return len((self.text or "").strip())


class PageSet:
    """
    Ordered, fixed-size collection of pages.

    Pages live in a tuple indexed by page_number - 1, so lookups are O(1)
    and iteration is always in ascending page order.
    """

    def __init__(self, pages: List[Page]):
        for idx, page in enumerate(pages):
            if page.page_number != idx + 1:
                raise ValueError(
                    f"Page at index {idx} has page_number {page.page_number}, expected {idx + 1}"
                )
        self._pages: Tuple[Page, ...] = tuple(pages)

    @classmethod
    def from_pages(cls, pages: Iterable[Page], page_count: int = 0) -> "PageSet":
        """
        Build a PageSet from pages in any order.
        Duplicate or non-positive page numbers are rejected. Numbering gaps,
        and trailing pages up to page_count, are filled with empty pages so
        they are classified and OCR'd.
        """
        by_number: Dict[int, Page] = {}
        for page in pages:
            if page.page_number < 1:
                raise ValueError(f"Page numbers are 1-based, got {page.page_number}")
            if page.page_number in by_number:
                raise ValueError(f"Duplicate page number {page.page_number}")
            by_number[page.page_number] = page

        last = max([page_count, *by_number])
        ordered: List[Page] = []
        for num in range(1, last + 1):
            ordered.append(by_number.get(num) or Page(page_number=num))
        return cls(ordered)

    @classmethod
    def from_extracted(
        cls,
        extracted: Iterable[ExtractedPage],
        image_for: Optional[Callable[[int], PageImage]] = None,
        page_count: int = 0,
    ) -> "PageSet":
        pages = cls.from_pages(
            [
                Page(
                    page_number=e.page_number,
                    text=e.text or "",
                    source_metadata=dict(e.source_metadata or {}),
                )
                for e in extracted
            ],
            page_count,
        )
        if image_for is None:
            return pages
        return cls([
            Page(p.page_number, p.text, image_for(p.page_number), p.source_metadata)
            for p in pages
        ])

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    def __bool__(self) -> bool:
        return bool(self._pages)

    def __contains__(self, page_number: object) -> bool:
        return isinstance(page_number, int) and 1 <= page_number <= len(self._pages)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageSet):
            return NotImplemented
        return self._pages == other._pages

    def __repr__(self) -> str:
        return f"PageSet(pages={len(self._pages)})"

    def get(self, page_number: int) -> Page:
        if page_number not in self:
            raise KeyError(page_number)
        return self._pages[page_number - 1]

    @property
    def page_numbers(self) -> List[int]:
        return [p.page_number for p in self._pages]

    @property
    def texts(self) -> List[str]:
        return [p.text for p in self._pages]


@dataclass(frozen=True)
class QualityVerdict:
    page_number: int
    sufficient: bool
    char_count: int = 0


@dataclass
class OCRTask:
    """Represents a single page to be OCR'd."""
    page_number: int
    image: PageImage
    language_hints: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class OCRResult:
    """Outcome of one OCRTask. Exactly one is produced per task."""
    page_number: int
    text: str = ""
    succeeded: bool = True
    error_reason: Optional[str] = None
    duration_seconds: float = 0.0

    @classmethod
    def ok(cls, page_number: int, text: str, duration_seconds: float = 0.0) -> "OCRResult":
        return cls(page_number=page_number, text=text or "", succeeded=True,
                   duration_seconds=duration_seconds)

    @classmethod
    def failed(cls, page_number: int, reason: str, duration_seconds: float = 0.0) -> "OCRResult":
        return cls(page_number=page_number, text="", succeeded=False, error_reason=reason,
                   duration_seconds=duration_seconds)


@dataclass
class DocumentMetadata:
    """Caller supplied values. Anything set here beats what the backend found."""
    title: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    source_descriptor: Optional[str] = None
    chunk_source: Optional[str] = None
    published: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "DocumentMetadata":
        """Accepts both snake_case keys and the document store's camelCase keys."""
        d = dict(d or {})
        aliases = {"docAuthor": "author", "docSource": "source_descriptor", "chunkSource": "chunk_source"}
        for old, new in aliases.items():
            if old in d and new not in d:
                d[new] = d.pop(old)
        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in d.items() if k in known})


@dataclass(frozen=True)
class Document:
    """The final artifact handed back to the caller."""
    id: str
    url: str
    title: str
    author: str
    description: str
    source_descriptor: str
    chunk_source: str
    published: str
    body: str
    word_count: int
    token_estimate: int
    page_count: int = 0
    ocr_page_numbers: Tuple[int, ...] = ()
    filename: str = ""

    @property
    def storage_name(self) -> str:
        return f"{safe_fname(self.filename or self.title, fallback='document')}-{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        """Record layout expected by the document store."""
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "docAuthor": self.author,
            "description": self.description,
            "docSource": self.source_descriptor,
            "chunkSource": self.chunk_source,
            "published": self.published,
            "wordCount": self.word_count,
            "pageContent": self.body,
            "token_count_estimate": self.token_estimate,
        }


@dataclass
class ConversionResult:
    """Tagged outcome for callers that do not want exceptions."""
    success: bool
    reason: Optional[str] = None
    documents: List[Document] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "reason": self.reason,
            "documents": [doc.to_dict() for doc in self.documents],
        }
