# paradoc/exceptions.py
class ParadocError(Exception):
    """Base exception for the paradoc library."""
    pass


class BackendLoadError(ParadocError):
    """Raised when an OCR backend cannot be resolved or constructed."""
    pass


class DocumentProcessingError(ParadocError):
    """Raised when a whole document fails to convert."""

    kind = "Document processing failed"

    def __init__(self, document: str, reason: str):
        self.document = document
        self.reason = reason
        super().__init__(f"{self.kind} for {document}: {reason}")


class ExtractionFailure(DocumentProcessingError):
    kind = "Text extraction failed"


class WholeDocumentOCRFailure(DocumentProcessingError):
    kind = "OCR failed"


class EmptyContentError(DocumentProcessingError):
    kind = "Empty content"
