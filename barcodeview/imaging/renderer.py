"""Barcode rasterization with nearest-neighbour upscaling."""

import logging
from typing import Optional

from PIL import Image

from .encoder import BitMatrix, encode
from .formats import BarcodeFormat

log = logging.getLogger(__name__)

BLACK = 0xFF000000
WHITE = 0xFFFFFFFF


def argb_to_rgba(color: int) -> tuple:
    """Split a packed 0xAARRGGBB colour into an RGBA tuple."""
    return ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF, (color >> 24) & 0xFF)


class EncodingError(Exception):
    """Raised when the encoder cannot produce a matrix for the payload."""


class BarcodeImageRenderer:
    """Renders barcodes of one format at a fixed target size."""

    def __init__(self, barcode_format: BarcodeFormat, image_height: int, image_width: int):
        self.barcode_format = barcode_format
        self.image_height = image_height
        self.image_width = image_width

    def generate(self, card_id: str) -> Optional[Image.Image]:
        """Render card_id, or return None if it is empty or cannot be rendered."""
        if not card_id:
            return None

        try:
            matrix = self._encode(card_id)
            image = _rasterize(matrix)

            # Some encoders ignore the requested size and return the smallest image
            # representing the symbol. Letting the surface scale it would filter and
            # blur the bars, so scale by a whole factor without filtering instead.
            height_scale = self.image_height // matrix.height
            width_scale = self.image_width // matrix.height
            scaling_factor = min(height_scale, width_scale)

            if scaling_factor > 1:
                image = image.resize(
                    (matrix.width * scaling_factor, matrix.height * scaling_factor),
                    Image.Resampling.NEAREST
                )

            return image
        except EncodingError:
            log.exception("Failed to generate barcode of type %s: %s", self.barcode_format.name, card_id)
        except MemoryError:
            log.warning(
                "Insufficient memory to render barcode, %dx%d, %s, length=%d",
                self.image_width, self.image_height, self.barcode_format.name, len(card_id),
                exc_info=True
            )

        return None

    def _encode(self, card_id: str) -> BitMatrix:
        try:
            return encode(card_id, self.barcode_format, self.image_width, self.image_height)
        except MemoryError:
            raise
        except Exception as e:
            # Encoders fail in many ways when the data is invalid for the barcode type
            raise EncodingError(str(e)) from e


def _rasterize(matrix: BitMatrix) -> Image.Image:
    """Build an opaque black/white image exactly the size of the matrix."""
    size = (matrix.width, matrix.height)
    mask = Image.frombytes("L", size, bytes(255 if cell else 0 for row in matrix.rows for cell in row))

    image = Image.new("RGBA", size, argb_to_rgba(WHITE))
    image.paste(argb_to_rgba(BLACK), None, mask)
    return image
