# src/paradoc/assembler.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, Iterable, Optional

from .exceptions import EmptyContentError
from .models import Document, DocumentMetadata, PageSet
from .tokenizer import estimate_tokens
from .utils import count_words, created_date, source_name, source_path

logger = logging.getLogger("paradoc")

NO_AUTHOR = "no author found"
NO_DESCRIPTION = "No description found."
DEFAULT_SOURCE_DESCRIPTOR = "pdf file uploaded by the user."


def _first(*values: Optional[str]) -> Optional[str]:
    for v in values:
        if isinstance(v, str) and v.strip():
            return v
    return None


class DocumentAssembler:
    """
    Turns a reconciled PageSet into the final Document.

    Metadata resolution, per field: caller override, then what the
    extraction backend reported on the first page, then a generic fallback.
    """

    def __init__(self, token_counter: Callable[[str], int] = estimate_tokens):
        self.token_counter = token_counter

    def assemble(
        self,
        page_set: PageSet,
        metadata: Optional[DocumentMetadata] = None,
        *,
        source: Any = None,
        ocr_page_numbers: Iterable[int] = (),
    ) -> Document:
        metadata = metadata or DocumentMetadata()
        name = source_name(source) if source is not None else (metadata.title or "document")

        body = "".join(page.text for page in page_set if page.text)
        if not body.strip():
            logger.error("Resulting text content was empty for %s", name)
            raise EmptyContentError(name, f"No text content found in {name}.")

        backend: Dict[str, Any] = {}
        for page in page_set:
            if page.source_metadata:
                backend = page.source_metadata
                break

        path = source_path(source)
        doc = Document(
            id=uuid.uuid4().hex,
            url=f"file://{path.resolve()}" if path is not None else "",
            title=_first(metadata.title, backend.get("title"), name),
            author=_first(metadata.author, backend.get("author"), backend.get("creator")) or NO_AUTHOR,
            description=_first(metadata.description, backend.get("subject"), backend.get("title")) or NO_DESCRIPTION,
            source_descriptor=_first(metadata.source_descriptor, backend.get("source")) or DEFAULT_SOURCE_DESCRIPTOR,
            chunk_source=metadata.chunk_source or "",
            published=_first(metadata.published) or created_date(path),
            body=body,
            word_count=count_words(body),
            token_estimate=self.token_counter(body),
            page_count=len(page_set),
            ocr_page_numbers=tuple(sorted(ocr_page_numbers)),
            filename=name,
        )
        logger.debug("Assembled %s, %d pages, %d words", name, doc.page_count, doc.word_count)
        return doc
