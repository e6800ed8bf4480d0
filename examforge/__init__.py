"""
examforge - Generate exam questions with Gemini and extract diagrams from exam PDFs.
"""

from .config import get_settings
from .cropper import aextract_regions, extract_regions
from .errors import (
    ConfigurationError,
    CropError,
    ExamForgeError,
    PageOutOfRangeError,
    RasterError,
    ResponseParseError,
)
from .generation import QuestionGenerator, generate_questions
from .pdf_parser import PDFParser
from .schema import BoundingBox, GeneratedQuestion, GenerationReport, GenerationRequest, PageRegion
from .validator import validate_questions

__all__ = [
    "QuestionGenerator",
    "generate_questions",
    "extract_regions",
    "aextract_regions",
    "validate_questions",
    "PDFParser",
    "GenerationRequest",
    "GeneratedQuestion",
    "GenerationReport",
    "BoundingBox",
    "PageRegion",
    "ExamForgeError",
    "ConfigurationError",
    "ResponseParseError",
    "PageOutOfRangeError",
    "RasterError",
    "CropError",
    "get_settings",
]

__version__ = "0.1.0"
