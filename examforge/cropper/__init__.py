"""
Diagram extraction pipeline.
PDF 페이지를 렌더링한 뒤 bounding box 단위로 영역을 잘라냅니다.
"""

import asyncio
import logging
import time

from ..schema import PageRegion
from .cropper import BackendPreference, ImageBackend, OpenCVBackend, PillowBackend, RegionCropper
from .normalizer import normalize_bounding_box
from .raster import PageRasterizer, PyMuPDFEngine, Pdf2ImageEngine, RasterEngine

logger = logging.getLogger(__name__)


def extract_regions(
    pdf_bytes: bytes,
    regions: list[PageRegion | dict],
    cropper: RegionCropper | None = None,
    rasterizer: PageRasterizer | None = None,
) -> list[bytes]:
    """
    PDF + page-tagged boxes → PNG crops.

    Each distinct page is rasterized once no matter how many regions it holds.

    Args:
        pdf_bytes: Raw PDF document
        regions: PageRegion objects (or dicts with page_number and bbox)
        cropper: RegionCropper to use (a default one otherwise)
        rasterizer: PageRasterizer to use (the cropper's otherwise)

    Returns:
        PNG bytes per region, in input order
    """
    cropper = cropper or RegionCropper(rasterizer=rasterizer)
    rasterizer = rasterizer or cropper.rasterizer
    regions = [r if isinstance(r, PageRegion) else PageRegion.model_validate(r) for r in regions]

    t0 = time.monotonic()
    pages = {}
    for page_number in dict.fromkeys(r.page_number for r in regions):
        pages[page_number] = rasterizer.render_page(pdf_bytes, page_number)

    crops = [cropper.crop(pages[r.page_number], r.bbox) for r in regions]
    logger.info(
        "Extracted %d regions from %d pages in %.1fs",
        len(crops), len(pages), time.monotonic() - t0,
    )
    return crops


async def aextract_regions(
    pdf_bytes: bytes,
    regions: list[PageRegion | dict],
    cropper: RegionCropper | None = None,
    rasterizer: PageRasterizer | None = None,
) -> list[bytes]:
    """extract_regions() run in a worker thread so the event loop stays free."""
    return await asyncio.to_thread(extract_regions, pdf_bytes, regions, cropper, rasterizer)


__all__ = [
    "extract_regions",
    "aextract_regions",
    "normalize_bounding_box",
    "RegionCropper",
    "BackendPreference",
    "ImageBackend",
    "PillowBackend",
    "OpenCVBackend",
    "PageRasterizer",
    "RasterEngine",
    "Pdf2ImageEngine",
    "PyMuPDFEngine",
]
