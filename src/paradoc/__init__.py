# src/paradoc/__init__.py
from .config import ParadocConfig
from .exceptions import (
    ParadocError,
    BackendLoadError,
    DocumentProcessingError,
    ExtractionFailure,
    WholeDocumentOCRFailure,
    EmptyContentError,
)
from .models import (
    ConversionResult,
    Document,
    DocumentMetadata,
    ExtractedPage,
    OCRResult,
    OCRTask,
    Page,
    PageImage,
    PageSet,
    QualityVerdict,
)
from .quality import classify
from .dispatcher import OCRDispatcher
from .reconcile import reconcile
from .assembler import DocumentAssembler
from .pipeline import DocumentPipeline, convert_document

__version__ = "0.1.0"
