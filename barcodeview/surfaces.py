"""In-memory display surfaces for barcode images and their captions."""

from enum import Enum
from typing import Optional, Tuple

from PIL import Image, ImageChops

from .imaging.renderer import argb_to_rgba


class Visibility(Enum):
    VISIBLE = "visible"
    GONE = "gone"


class ImageSurface:
    """Image view that records what it is told to show."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.image: Optional[Image.Image] = None
        self.content_description = ""
        self.padding: Tuple[int, int, int, int] = (0, 0, 0, 0)
        self.visibility = Visibility.VISIBLE
        self.color_tint: Optional[int] = None

    def set_image(self, image: Optional[Image.Image]) -> None:
        self.image = image

    def set_content_description(self, description: str) -> None:
        self.content_description = description

    def set_padding(self, left: int, top: int, right: int, bottom: int) -> None:
        self.padding = (left, top, right, bottom)

    def set_visibility(self, visibility: Visibility) -> None:
        self.visibility = visibility

    def set_color_tint(self, color: Optional[int]) -> None:
        """Lighten the image towards color, or clear the tint with None."""
        self.color_tint = color

    def composite(self) -> Optional[Image.Image]:
        """Return the picture as displayed: tinted and padded, or None when nothing shows."""
        if self.visibility is Visibility.GONE or self.image is None:
            return None

        image = self.image.convert("RGBA")
        if self.color_tint is not None:
            tint = Image.new("RGB", image.size, argb_to_rgba(self.color_tint)[:3])
            image = ImageChops.lighter(image.convert("RGB"), tint).convert("RGBA")

        left, top, right, bottom = self.padding
        if not any(self.padding):
            return image

        canvas = Image.new("RGBA", (image.width + left + right, image.height + top + bottom), "white")
        canvas.paste(image, (left, top))
        return canvas


class CaptionSurface:
    """Text view that records its text and visibility."""

    def __init__(self):
        self.text = ""
        self.visibility = Visibility.VISIBLE

    def set_text(self, text: str) -> None:
        self.text = text

    def set_visibility(self, visibility: Visibility) -> None:
        self.visibility = visibility
