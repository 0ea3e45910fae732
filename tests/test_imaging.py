#!/usr/bin/env python3
"""Test suite for barcode formats, encoding and rendering."""

import logging
import shutil
import sys
import os
import pytest
from PIL import Image

# Add package directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import barcodeview.imaging.renderer as renderer_module
from barcodeview.imaging import BarcodeFormat, BarcodeImageRenderer, BitMatrix, encode
from barcodeview.imaging.formats import MAX_WIDTH_1D, MAX_WIDTH_2D

BLACK_RGBA = (0, 0, 0, 255)
WHITE_RGBA = (255, 255, 255, 255)

requires_ghostscript = pytest.mark.skipif(
    shutil.which("gs") is None, reason="treepoem needs Ghostscript"
)


def checkerboard(width, height):
    return BitMatrix.from_rows([[(x + y) % 2 == 0 for x in range(width)] for y in range(height)])


class FakeEncoder:
    """Stands in for the encoder, recording every call."""

    def __init__(self, matrix=None, error=None):
        self.matrix = matrix
        self.error = error
        self.calls = []

    def __call__(self, text, barcode_format, width, height):
        self.calls.append((text, barcode_format, width, height))
        if self.error is not None:
            raise self.error
        return self.matrix


class ExhaustedMatrix:
    width = 4
    height = 4

    @property
    def rows(self):
        raise MemoryError()


def test_format_properties():
    """Test the derived properties of barcode formats."""
    print("Testing format properties...")

    square = {f for f in BarcodeFormat if f.is_square}
    assert square == {BarcodeFormat.AZTEC, BarcodeFormat.DATA_MATRIX,
                      BarcodeFormat.MAXICODE, BarcodeFormat.QR_CODE}, f"Unexpected square formats {square}"

    padded = {f for f in BarcodeFormat if f.has_internal_padding}
    assert padded == {BarcodeFormat.PDF_417, BarcodeFormat.QR_CODE}, f"Unexpected padded formats {padded}"

    assert BarcodeFormat.QR_CODE.max_width == MAX_WIDTH_2D
    assert BarcodeFormat.PDF_417.max_width == MAX_WIDTH_2D
    assert BarcodeFormat.DATA_MATRIX.max_width == MAX_WIDTH_1D, "Data Matrix should be capped like 1D"
    assert BarcodeFormat.EAN_13.max_width == MAX_WIDTH_1D
    assert MAX_WIDTH_2D < MAX_WIDTH_1D
    print("✓ Format properties work")


def test_format_fallbacks_and_names():
    """Test fallback payloads and name lookup."""
    assert BarcodeFormat.EAN_8.fallback_payload == "32123456"
    assert BarcodeFormat.EAN_13.fallback_payload == "5901234123457"
    assert BarcodeFormat.CODABAR.fallback_payload == "C0C"
    for barcode_format in (BarcodeFormat.MAXICODE, BarcodeFormat.RSS_14,
                           BarcodeFormat.RSS_EXPANDED, BarcodeFormat.UPC_EAN_EXTENSION):
        assert barcode_format.fallback_payload is None, f"{barcode_format} should have no fallback"

    assert BarcodeFormat.from_name("qr_code") is BarcodeFormat.QR_CODE
    assert BarcodeFormat.QR_CODE.pretty_name == "QR Code"
    assert all(f.pretty_name for f in BarcodeFormat), "Every format needs a display name"
    with pytest.raises(ValueError):
        BarcodeFormat.from_name("NOPE")


def test_qr_code_encoding():
    """Test QR code matrices are expanded towards the requested size."""
    print("Testing QR code encoding...")

    minimal = encode("test_data", BarcodeFormat.QR_CODE, 0, 0)
    assert minimal.width == minimal.height, "QR code matrix should be square"
    assert minimal.width >= 21 + 8, "QR code matrix should include the quiet zone"
    assert not any(minimal.rows[0]), "Quiet zone should be clear"

    expanded = encode("test_data", BarcodeFormat.QR_CODE, minimal.width * 3 + 1, minimal.width * 5)
    assert expanded.width == minimal.width * 3, "Expansion should use the largest fitting multiple"
    assert expanded.get(3 * 4, 3 * 4) == minimal.get(4, 4)
    print("✓ QR code encoding works")


def test_qr_code_encoding_rejects_oversized_payload():
    with pytest.raises(Exception):
        encode("x" * 5000, BarcodeFormat.QR_CODE, 100, 100)


@requires_ghostscript
def test_bwipp_encoding():
    """Test a linear barcode through treepoem."""
    matrix = encode("32123456", BarcodeFormat.EAN_8, 100, 100)
    assert matrix.width > 0 and matrix.height > 0
    assert any(any(row) for row in matrix.rows), "EAN-8 should contain bars"


SAMPLE_PAYLOADS = {
    BarcodeFormat.MAXICODE: "This is MaxiCode",
    BarcodeFormat.RSS_14: "(01)24012345678905",
    BarcodeFormat.RSS_EXPANDED: "(01)95012345678903(3103)000123",
    BarcodeFormat.UPC_EAN_EXTENSION: "12345",
}


def sample_payload(barcode_format):
    return barcode_format.fallback_payload or SAMPLE_PAYLOADS[barcode_format]


@requires_ghostscript
@pytest.mark.parametrize("barcode_format", [f for f in BarcodeFormat if f.fallback_payload is not None])
def test_fallback_payload_encodes(barcode_format):
    """Every fallback payload must be valid for its own format."""
    matrix = encode(barcode_format.fallback_payload, barcode_format, 400, 400)
    assert matrix.width > 0 and matrix.height > 0
    assert any(any(row) for row in matrix.rows), f"{barcode_format} fallback rendered no modules"


@requires_ghostscript
@pytest.mark.parametrize("barcode_format", list(BarcodeFormat))
def test_render_real_symbologies_two_colours(barcode_format):
    image = BarcodeImageRenderer(barcode_format, 400, 400).generate(sample_payload(barcode_format))
    assert image is not None, f"{barcode_format} sample did not render"
    assert set(image.getdata()) <= {BLACK_RGBA, WHITE_RGBA}


@pytest.mark.parametrize("barcode_format", list(BarcodeFormat))
def test_render_two_colours_for_every_format(monkeypatch, barcode_format):
    monkeypatch.setattr(renderer_module, "encode", FakeEncoder(matrix=checkerboard(6, 3)))

    image = BarcodeImageRenderer(barcode_format, 30, 30).generate("abc")

    assert image.size == (60, 30)
    assert set(image.getdata()) == {BLACK_RGBA, WHITE_RGBA}


def test_empty_payload_skips_encoder(monkeypatch):
    fake = FakeEncoder(matrix=checkerboard(4, 4))
    monkeypatch.setattr(renderer_module, "encode", fake)

    for barcode_format in BarcodeFormat:
        assert BarcodeImageRenderer(barcode_format, 100, 100).generate("") is None
    assert fake.calls == [], "Encoder should not run for empty payloads"


def test_render_two_colours_without_scaling(monkeypatch):
    """Test rasterization keeps matrix size when no whole scale fits."""
    matrix = checkerboard(7, 5)
    fake = FakeEncoder(matrix=matrix)
    monkeypatch.setattr(renderer_module, "encode", fake)

    image = BarcodeImageRenderer(BarcodeFormat.CODE_128, 9, 9).generate("abc")

    assert fake.calls == [("abc", BarcodeFormat.CODE_128, 9, 9)]
    assert image.size == (7, 5), f"Expected raw matrix size, got {image.size}"
    assert image.mode == "RGBA"
    assert set(image.getdata()) == {BLACK_RGBA, WHITE_RGBA}, "Only opaque black and white expected"
    for y in range(5):
        for x in range(7):
            expected = BLACK_RGBA if matrix.get(x, y) else WHITE_RGBA
            assert image.getpixel((x, y)) == expected


def test_render_upscales_with_nearest_neighbour(monkeypatch):
    """Test undersized matrices are scaled by a whole factor without blending."""
    matrix = checkerboard(10, 10)
    monkeypatch.setattr(renderer_module, "encode", FakeEncoder(matrix=matrix))

    image = BarcodeImageRenderer(BarcodeFormat.DATA_MATRIX, 45, 47).generate("abc")

    assert image.size == (40, 40), f"Expected 4x scale, got {image.size}"
    assert set(image.getdata()) == {BLACK_RGBA, WHITE_RGBA}
    for y in range(40):
        for x in range(40):
            expected = BLACK_RGBA if matrix.get(x // 4, y // 4) else WHITE_RGBA
            assert image.getpixel((x, y)) == expected, f"Block at {(x, y)} is not uniform"


def test_render_scales_width_against_matrix_height(monkeypatch):
    """Both scale ratios are taken against the matrix height."""
    monkeypatch.setattr(renderer_module, "encode", FakeEncoder(matrix=checkerboard(20, 5)))

    image = BarcodeImageRenderer(BarcodeFormat.CODE_128, 30, 30).generate("abc")

    assert image.size == (120, 30)


def test_render_encoding_failure(monkeypatch, caplog):
    monkeypatch.setattr(renderer_module, "encode", FakeEncoder(error=RuntimeError("bad data")))

    with caplog.at_level(logging.ERROR):
        image = BarcodeImageRenderer(BarcodeFormat.EAN_13, 100, 100).generate("not-digits")

    assert image is None
    assert "Failed to generate barcode of type EAN_13: not-digits" in caplog.text


def test_render_memory_exhaustion(monkeypatch, caplog):
    monkeypatch.setattr(renderer_module, "encode", FakeEncoder(matrix=ExhaustedMatrix()))

    with caplog.at_level(logging.WARNING):
        image = BarcodeImageRenderer(BarcodeFormat.QR_CODE, 300, 200).generate("secret-payload")

    assert image is None
    assert "Insufficient memory to render barcode, 200x300, QR_CODE, length=14" in caplog.text
    assert "secret-payload" not in caplog.text, "Payload content should not be logged"


def test_render_real_qr_code():
    image = BarcodeImageRenderer(BarcodeFormat.QR_CODE, 200, 200).generate("test_data")
    assert isinstance(image, Image.Image), f"QR code should return PIL Image, got {type(image)}"
    assert image.size[0] == image.size[1] and 0 < image.size[0] <= 200
    assert set(image.getdata()) <= {BLACK_RGBA, WHITE_RGBA}


@requires_ghostscript
def test_render_real_datamatrix_upscaled():
    image = BarcodeImageRenderer(BarcodeFormat.DATA_MATRIX, 400, 400).generate("test_data")
    assert isinstance(image, Image.Image)
    assert image.size[0] > 100, "Minimal Data Matrix output should be upscaled"
    assert set(image.getdata()) <= {BLACK_RGBA, WHITE_RGBA}


def main():
    """Run all tests."""
    sys.exit(pytest.main([__file__, "-v"]))


if __name__ == "__main__":
    main()
