"""Barcode matrix encoding on top of qrcode and treepoem."""

from typing import NamedTuple, Tuple

import qrcode
import treepoem
from PIL import Image

from .formats import BarcodeFormat

QR_QUIET_ZONE = 4
LUMINANCE_THRESHOLD = 128


class BitMatrix(NamedTuple):
    """Set/clear grid produced by an encoder, indexed as rows[y][x]."""
    width: int
    height: int
    rows: Tuple[Tuple[bool, ...], ...]

    def get(self, x: int, y: int) -> bool:
        return self.rows[y][x]

    @classmethod
    def from_rows(cls, rows) -> "BitMatrix":
        rows = tuple(tuple(bool(cell) for cell in row) for row in rows)
        width = len(rows[0]) if rows else 0
        return cls(width, len(rows), rows)

    @classmethod
    def from_image(cls, image: Image.Image) -> "BitMatrix":
        """Threshold an image into a matrix, dark pixels are set."""
        gray = image.convert("L")
        width, height = gray.size
        pixels = list(gray.getdata())
        rows = tuple(
            tuple(p < LUMINANCE_THRESHOLD for p in pixels[y * width:(y + 1) * width])
            for y in range(height)
        )
        return cls(width, height, rows)


def encode(text: str, barcode_format: BarcodeFormat, width: int, height: int) -> BitMatrix:
    """Encode text into a matrix, raising whatever the backend raises on failure."""
    if barcode_format is BarcodeFormat.QR_CODE:
        matrix = _encode_qr_code(text, width, height)
    else:
        matrix = _encode_bwipp(text, barcode_format)

    if matrix.width == 0 or matrix.height == 0:
        raise ValueError(f"Encoder returned an empty matrix for {barcode_format.name}")
    return matrix


def _encode_qr_code(text: str, width: int, height: int) -> BitMatrix:
    """Encode a QR code, expanded by the largest whole multiple fitting width x height."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=1,
        border=QR_QUIET_ZONE
    )
    qr.add_data(text)
    qr.make(fit=True)
    modules = qr.get_matrix()

    size = len(modules)
    multiple = max(1, min(width // size, height // size))
    rows = []
    for row in modules:
        expanded = [cell for cell in row for _ in range(multiple)]
        rows.extend([expanded] * multiple)
    return BitMatrix.from_rows(rows)


def _encode_bwipp(text: str, barcode_format: BarcodeFormat) -> BitMatrix:
    """Encode through BWIPP, which always renders the minimal symbol."""
    barcode_type = barcode_format.value
    if barcode_format is BarcodeFormat.UPC_EAN_EXTENSION and len(text) != 5:
        barcode_type = "ean2"

    image = treepoem.generate_barcode(barcode_type=barcode_type, data=text)
    return BitMatrix.from_image(image)
