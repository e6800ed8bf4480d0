"""
PDF page rasterization with engine failover.
PDF 페이지를 PNG로 렌더링하며 실패 시 대체 엔진을 사용합니다.

Primary engine: pdf2image (poppler's pdftoppm), asked for the single page.
Fallback engine: PyMuPDF document -> page -> scaled pixmap.
"""

import io
import logging
import shutil
from abc import ABC, abstractmethod

import fitz  # PyMuPDF

from ..config import get_settings
from ..errors import PageOutOfRangeError, RasterError
from ..schema import RasterPage

logger = logging.getLogger(__name__)


def _check_import(*module_names: str) -> bool:
    """Check if all given module names can be imported."""
    for name in module_names:
        try:
            __import__(name)
        except ImportError:
            return False
    return True


class RasterEngine(ABC):
    """Renders one PDF page to PNG."""

    name = "base"

    @abstractmethod
    def render(self, pdf_bytes: bytes, page_number: int, scale: float) -> RasterPage:
        """Render 1-indexed page_number at the given upscale factor."""
        pass

    @staticmethod
    def is_available() -> bool:
        return False


class Pdf2ImageEngine(RasterEngine):
    """Dedicated PDF-to-image conversion through poppler."""

    name = "pdf2image"

    def render(self, pdf_bytes: bytes, page_number: int, scale: float) -> RasterPage:
        from pdf2image import convert_from_bytes

        images = convert_from_bytes(
            pdf_bytes,
            dpi=round(72 * scale),  # PDF default is 72 DPI
            first_page=page_number,
            last_page=page_number,
            fmt="png",
        )
        if not images:
            raise RuntimeError(f"Failed to convert PDF page {page_number}")

        try:
            image = images[0]
            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
            width, height = image.size
        finally:
            for img in images:
                img.close()

        return RasterPage(
            image=buffer.getvalue(),
            width=width,
            height=height,
            page_number=page_number,
            engine=self.name,
        )

    @staticmethod
    def is_available() -> bool:
        if not _check_import("pdf2image"):
            return False
        return shutil.which("pdftoppm") is not None


class PyMuPDFEngine(RasterEngine):
    """General document/page/matrix render pipeline."""

    name = "pymupdf"

    def render(self, pdf_bytes: bytes, page_number: int, scale: float) -> RasterPage:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        try:
            if not 1 <= page_number <= doc.page_count:
                raise PageOutOfRangeError(page_number, doc.page_count)

            page = doc[page_number - 1]
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
            return RasterPage(
                image=pix.tobytes("png"),
                width=pix.width,
                height=pix.height,
                page_number=page_number,
                engine=self.name,
            )
        finally:
            _close_quietly(doc)

    @staticmethod
    def is_available() -> bool:
        return _check_import("fitz")


def _close_quietly(doc) -> None:
    """Release renderer resources; cleanup failures are logged and dropped."""
    try:
        doc.close()
    except Exception as e:
        logger.debug("Ignoring PDF cleanup error: %s", e)


class PageRasterizer:
    """Renders PDF pages, falling back to the secondary engine when the primary fails."""

    def __init__(
        self,
        primary: RasterEngine | None = None,
        fallback: RasterEngine | None = None,
        scale: float | None = None,
    ):
        self.primary = primary or Pdf2ImageEngine()
        self.fallback = fallback or PyMuPDFEngine()
        self.scale = scale if scale is not None else get_settings().PDF_RENDER_SCALE

    def render_page(self, pdf_bytes: bytes, page_number: int = 1) -> RasterPage:
        """
        Render one page of a PDF.

        Raises:
            PageOutOfRangeError: page_number is outside the document
            RasterError: both engines failed
        """
        if not pdf_bytes:
            raise ValueError("PDF buffer is required")
        if page_number < 1:
            raise PageOutOfRangeError(page_number)

        logger.info("Converting PDF page %d to image...", page_number)
        try:
            page = self.primary.render(pdf_bytes, page_number, self.scale)
        except Exception as primary_error:
            logger.warning(
                "%s failed (%s), trying %s fallback...",
                self.primary.name, primary_error, self.fallback.name,
            )
            try:
                page = self.fallback.render(pdf_bytes, page_number, self.scale)
            except PageOutOfRangeError:
                raise
            except Exception as fallback_error:
                logger.error("Error converting PDF page %d: %s", page_number, fallback_error)
                raise RasterError(primary_error, fallback_error) from fallback_error

        logger.info(
            "PDF page %d converted successfully (%s, %dx%d)",
            page_number, page.engine, page.width, page.height,
        )
        return page

    def check_engines(self) -> dict[str, bool]:
        """Report whether each engine's dependencies are installed."""
        return {
            self.primary.name: self.primary.is_available(),
            self.fallback.name: self.fallback.is_available(),
        }
