"""Supported barcode formats and their display properties."""

from enum import Enum
from typing import Optional

# When drawn in a smaller surface 1D barcodes end up squished, 2D ones look fine.
MAX_WIDTH_1D = 1500
MAX_WIDTH_2D = 500


class BarcodeFormat(Enum):
    """Barcode symbology, valued by its BWIPP encoder name."""
    AZTEC = "azteccode"
    CODABAR = "rationalizedCodabar"
    CODE_39 = "code39ext"
    CODE_93 = "code93ext"
    CODE_128 = "code128"
    DATA_MATRIX = "datamatrix"
    EAN_8 = "ean8"
    EAN_13 = "ean13"
    ITF = "interleaved2of5"
    MAXICODE = "maxicode"
    PDF_417 = "pdf417"
    QR_CODE = "qrcode"
    RSS_14 = "databaromni"
    RSS_EXPANDED = "databarexpanded"
    UPC_A = "upca"
    UPC_E = "upce"
    UPC_EAN_EXTENSION = "ean5"

    @classmethod
    def from_name(cls, name: str) -> "BarcodeFormat":
        """Look up a format by member name, ignoring case."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown barcode format: {name}") from None

    @property
    def pretty_name(self) -> str:
        return _PRETTY_NAMES[self]

    @property
    def is_square(self) -> bool:
        return self in _SQUARE

    @property
    def has_internal_padding(self) -> bool:
        """Formats whose images already carry whitespace around the symbol."""
        return self in _INTERNAL_PADDING

    @property
    def max_width(self) -> int:
        # Data Matrix is square but rectangular variants get blurry when capped like 2D
        if self in _CAPPED_2D:
            return MAX_WIDTH_2D
        return MAX_WIDTH_1D

    @property
    def fallback_payload(self) -> Optional[str]:
        """Example payload known to encode for this format, if there is one."""
        return _FALLBACK_PAYLOADS.get(self)


_PRETTY_NAMES = {
    BarcodeFormat.AZTEC: "Aztec",
    BarcodeFormat.CODABAR: "Codabar",
    BarcodeFormat.CODE_39: "Code 39",
    BarcodeFormat.CODE_93: "Code 93",
    BarcodeFormat.CODE_128: "Code 128",
    BarcodeFormat.DATA_MATRIX: "Data Matrix",
    BarcodeFormat.EAN_8: "EAN 8",
    BarcodeFormat.EAN_13: "EAN 13",
    BarcodeFormat.ITF: "ITF",
    BarcodeFormat.MAXICODE: "MaxiCode",
    BarcodeFormat.PDF_417: "PDF 417",
    BarcodeFormat.QR_CODE: "QR Code",
    BarcodeFormat.RSS_14: "GS1 DataBar",
    BarcodeFormat.RSS_EXPANDED: "GS1 DataBar Expanded",
    BarcodeFormat.UPC_A: "UPC A",
    BarcodeFormat.UPC_E: "UPC E",
    BarcodeFormat.UPC_EAN_EXTENSION: "UPC/EAN Extension",
}

_SQUARE = frozenset({
    BarcodeFormat.AZTEC,
    BarcodeFormat.DATA_MATRIX,
    BarcodeFormat.MAXICODE,
    BarcodeFormat.QR_CODE,
})

_INTERNAL_PADDING = frozenset({BarcodeFormat.PDF_417, BarcodeFormat.QR_CODE})

_CAPPED_2D = frozenset({
    BarcodeFormat.AZTEC,
    BarcodeFormat.MAXICODE,
    BarcodeFormat.PDF_417,
    BarcodeFormat.QR_CODE,
})

_FALLBACK_PAYLOADS = {
    BarcodeFormat.AZTEC: "AZTEC",
    BarcodeFormat.DATA_MATRIX: "DATA_MATRIX",
    BarcodeFormat.PDF_417: "PDF_417",
    BarcodeFormat.QR_CODE: "QR_CODE",
    BarcodeFormat.CODABAR: "C0C",
    BarcodeFormat.CODE_39: "CODE_39",
    BarcodeFormat.CODE_93: "CODE_93",
    BarcodeFormat.CODE_128: "CODE_128",
    BarcodeFormat.EAN_8: "32123456",
    BarcodeFormat.EAN_13: "5901234123457",
    BarcodeFormat.ITF: "1003",
    BarcodeFormat.UPC_A: "123456789012",
    BarcodeFormat.UPC_E: "0123456",
}
