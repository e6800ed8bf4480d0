"""
PDF document utilities using PyMuPDF.
PDF를 페이지 단위로 나누거나 일부 페이지만 추출합니다.
"""

import logging

import fitz  # PyMuPDF
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PdfChunk(BaseModel):
    """Consecutive page range copied into its own PDF."""

    buffer: bytes
    start_page: int
    end_page: int


class ExtractedPages(BaseModel):
    buffer: bytes
    pages: list[int] = Field(default_factory=list)
    original_page_count: int = 0
    extracted_page_count: int = 0


class PDFParser:
    """Splits and subsets an in-memory PDF."""

    def __init__(self, pdf_bytes: bytes):
        """
        Initialize PDF parser.

        Args:
            pdf_bytes: Raw PDF document
        """
        if not pdf_bytes:
            raise ValueError("PDF buffer is required")
        self.pdf_bytes = pdf_bytes

    def _open(self):
        return fitz.open(stream=self.pdf_bytes, filetype="pdf")

    @property
    def page_count(self) -> int:
        with self._open() as doc:
            return doc.page_count

    def split_into_chunks(self, pages_per_chunk: int = 10) -> list[PdfChunk]:
        """
        Split the document into PDFs of at most pages_per_chunk pages.

        Returns:
            Chunks in page order, with 1-indexed inclusive page ranges
        """
        if pages_per_chunk < 1:
            raise ValueError(f"pages_per_chunk must be at least 1, got {pages_per_chunk}")

        chunks = []
        with self._open() as doc:
            total = doc.page_count
            for start in range(0, total, pages_per_chunk):
                end = min(start + pages_per_chunk, total)
                with fitz.open() as chunk_doc:
                    chunk_doc.insert_pdf(doc, from_page=start, to_page=end - 1)
                    chunks.append(
                        PdfChunk(buffer=chunk_doc.tobytes(), start_page=start + 1, end_page=end)
                    )

        logger.info("Split %d pages into %d chunks", total, len(chunks))
        return chunks

    def extract_pages(self, page_numbers: list[int]) -> ExtractedPages:
        """
        Copy the given 1-indexed pages into a new PDF.

        Duplicates are dropped, out-of-range numbers ignored and the rest sorted.

        Raises:
            ValueError: no requested page exists in the document
        """
        with self._open() as doc:
            total = doc.page_count
            pages = sorted({p for p in page_numbers if 1 <= p <= total})
            if not pages:
                raise ValueError("No valid pages specified")

            with fitz.open() as new_doc:
                for p in pages:
                    new_doc.insert_pdf(doc, from_page=p - 1, to_page=p - 1)
                buffer = new_doc.tobytes()

        return ExtractedPages(
            buffer=buffer,
            pages=pages,
            original_page_count=total,
            extracted_page_count=len(pages),
        )
