"""
Exception hierarchy shared by the generation and extraction pipelines.
생성 및 추출 파이프라인에서 공통으로 사용하는 예외 정의입니다.
"""


class ExamForgeError(Exception):
    """Base class for all errors raised by examforge."""


class ConfigurationError(ExamForgeError):
    """Required configuration (e.g. model credentials) is missing."""


class ModelResponseError(ExamForgeError):
    """The model service answered, but with nothing usable."""


class ResponseParseError(ExamForgeError):
    """Model output could not be recovered into a question array."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class PageOutOfRangeError(ExamForgeError, ValueError):
    """Requested page number lies outside the document."""

    def __init__(self, page_number: int, page_count: int | None = None):
        if page_count is None:
            message = f"Page number {page_number} is out of range (pages start at 1)"
        else:
            message = f"Page number {page_number} is out of range (1-{page_count})"
        super().__init__(message)
        self.page_number = page_number
        self.page_count = page_count


class _DualFailureError(ExamForgeError):
    """Both the primary and the fallback implementation failed."""

    what = "operation"

    def __init__(self, primary_error: Exception, fallback_error: Exception):
        super().__init__(
            f"{self.what} failed with both backends: "
            f"primary: {primary_error}; fallback: {fallback_error}"
        )
        self.primary_error = primary_error
        self.fallback_error = fallback_error


class RasterError(_DualFailureError):
    """Neither raster engine could render the page."""

    what = "PDF page rendering"


class CropError(_DualFailureError):
    """Neither image backend could crop the region."""

    what = "Image cropping"
