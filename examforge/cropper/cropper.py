"""
Region cropping with sticky backend failover.
페이지 이미지에서 영역을 잘라내며 백엔드 장애 시 전환합니다.
Pillow is the primary backend and OpenCV the secondary; once the secondary has
rescued a crop it stays first choice for the rest of the process.
"""

import base64
import io
import logging
from abc import ABC, abstractmethod

from PIL import Image

from ..errors import CropError
from ..schema import BoundingBox, RasterPage
from .normalizer import normalize_bounding_box
from .raster import PageRasterizer, _check_import

logger = logging.getLogger(__name__)

# 1x1 PNG used to probe backends
_PROBE_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)


class ImageBackend(ABC):
    """Decodes a PNG, crops one bounding box and re-encodes it as PNG."""

    name = "base"

    @abstractmethod
    def crop(self, image_bytes: bytes, bbox: BoundingBox) -> bytes:
        pass

    @staticmethod
    def is_available() -> bool:
        return False


class PillowBackend(ImageBackend):
    name = "pillow"

    def crop(self, image_bytes: bytes, bbox: BoundingBox) -> bytes:
        with Image.open(io.BytesIO(image_bytes)) as img:
            rect = normalize_bounding_box(bbox, img.width, img.height)
            logger.debug(
                "Cropping with Pillow: %dx%d at (%d, %d)",
                rect.width, rect.height, rect.x, rect.y,
            )
            cropped = img.crop((rect.x, rect.y, rect.right, rect.bottom))
            buffer = io.BytesIO()
            cropped.save(buffer, format="PNG")
        return buffer.getvalue()

    @staticmethod
    def is_available() -> bool:
        return _check_import("PIL")


class OpenCVBackend(ImageBackend):
    name = "opencv"

    def crop(self, image_bytes: bytes, bbox: BoundingBox) -> bytes:
        import cv2
        import numpy as np

        img = cv2.imdecode(np.frombuffer(image_bytes, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if img is None:
            raise ValueError("OpenCV could not decode the image buffer")

        height, width = img.shape[:2]
        rect = normalize_bounding_box(bbox, width, height)
        logger.debug(
            "Cropping with OpenCV: %dx%d at (%d, %d)",
            rect.width, rect.height, rect.x, rect.y,
        )
        ok, encoded = cv2.imencode(".png", img[rect.y:rect.bottom, rect.x:rect.right])
        if not ok:
            raise RuntimeError("OpenCV failed to encode the cropped region")
        return encoded.tobytes()

    @staticmethod
    def is_available() -> bool:
        return _check_import("cv2", "numpy")


class BackendPreference:
    """Whether the secondary backend should be tried first.

    Monotonic: once switched it is never reset.
    """

    def __init__(self):
        self.prefer_secondary = False

    def switch_to_secondary(self) -> None:
        if not self.prefer_secondary:
            logger.warning("Switching preferred image backend to the secondary backend")
            self.prefer_secondary = True


# Shared by every RegionCropper that is not given its own preference
_process_preference = BackendPreference()


class RegionCropper:
    """Crops regions out of rendered pages."""

    def __init__(
        self,
        primary: ImageBackend | None = None,
        secondary: ImageBackend | None = None,
        preference: BackendPreference | None = None,
        rasterizer: PageRasterizer | None = None,
    ):
        self.primary = primary or PillowBackend()
        self.secondary = secondary or OpenCVBackend()
        self.preference = preference or _process_preference
        self._rasterizer = rasterizer

    @property
    def rasterizer(self) -> PageRasterizer:
        if self._rasterizer is None:
            self._rasterizer = PageRasterizer()
        return self._rasterizer

    def _ordered_backends(self) -> tuple[ImageBackend, ImageBackend]:
        if self.preference.prefer_secondary:
            return self.secondary, self.primary
        return self.primary, self.secondary

    def crop(self, image: bytes | RasterPage, bbox: BoundingBox | dict) -> bytes:
        """
        Crop one region, failing over to the other backend.

        Args:
            image: PNG bytes or a RasterPage
            bbox: Bounding box in any supported shape

        Returns:
            PNG bytes of the region

        Raises:
            CropError: both backends failed
        """
        if not image or not bbox:
            raise ValueError("Image buffer and bounding box are required")
        image_bytes = image.image if isinstance(image, RasterPage) else image
        if not isinstance(bbox, BoundingBox):
            bbox = BoundingBox.model_validate(bbox)

        first, second = self._ordered_backends()
        try:
            return first.crop(image_bytes, bbox)
        except Exception as first_error:
            logger.warning("%s cropping failed: %s", first.name, first_error)
            try:
                cropped = second.crop(image_bytes, bbox)
            except Exception as second_error:
                logger.error("%s cropping failed: %s", second.name, second_error)
                raise CropError(first_error, second_error) from second_error

        if second is self.secondary:
            self.preference.switch_to_secondary()
        return cropped

    def crop_regions_from_pdf(
        self,
        pdf_bytes: bytes,
        page_number: int,
        bounding_boxes: list[BoundingBox | dict],
    ) -> list[bytes]:
        """Rasterize one page once and crop every box from that single raster."""
        page = self.rasterizer.render_page(pdf_bytes, page_number)
        return self.crop_regions(page, bounding_boxes)

    def crop_regions(self, page: RasterPage, bounding_boxes: list[BoundingBox | dict]) -> list[bytes]:
        cropped = []
        for i, bbox in enumerate(bounding_boxes):
            logger.debug("Processing region %d/%d...", i + 1, len(bounding_boxes))
            cropped.append(self.crop(page, bbox))
        return cropped

    def check_backends(self) -> dict[str, bool]:
        """Report which backends can decode and crop a tiny PNG."""
        probe_box = BoundingBox(x=0, y=0, width=1, height=1)
        results = {}
        for backend in (self.primary, self.secondary):
            try:
                backend.crop(_PROBE_PNG, probe_box)
                results[backend.name] = True
            except Exception as e:
                logger.warning("%s test failed: %s", backend.name, e)
                results[backend.name] = False
        return results
