"""Background task that renders a barcode and loads it into an image surface.

Only weak references to the surfaces are kept, so a task never keeps a
surface alive. If the image surface is gone by the time the follow-up step
runs, the task does nothing.
"""

import logging
import math
import weakref
from typing import Callable, NamedTuple, Optional

from PIL import Image

from .imaging import BarcodeFormat, BarcodeImageRenderer
from .surfaces import Visibility

log = logging.getLogger(__name__)

LIGHT_GRAY = 0xFFCCCCCC
ROUND_CORNER_PADDING_DP = 10
CONTENT_DESCRIPTION = "Image of {} barcode"


class DisplayMetrics(NamedTuple):
    """Screen properties used for sizing."""
    width_pixels: int = 1080
    density: float = 1.0

    def dp_to_px(self, dp: float) -> int:
        return int(math.floor(dp * self.density + 0.5))


def _never_cancelled() -> bool:
    return False


class BarcodeImageWriterTask:
    """Sizes, renders and displays one barcode."""

    def __init__(self, image_view, card_id: str, barcode_format: BarcodeFormat,
                 text_view=None, show_fallback: bool = True,
                 callback: Optional[Callable[[bool], None]] = None,
                 round_corner_padding: bool = False, is_fullscreen: bool = False,
                 display_metrics: DisplayMetrics = DisplayMetrics()):
        self._is_successful = True
        self.callback = callback

        self._image_view_ref = weakref.ref(image_view)
        self._text_view_ref = weakref.ref(text_view) if text_view is not None else None

        self.card_id = card_id
        self.barcode_format = barcode_format
        self.show_fallback = show_fallback

        image_view_width = image_view.width
        image_view_height = image_view.height

        # Some barcodes already have internal whitespace and shouldn't get extra padding
        if round_corner_padding and not barcode_format.has_internal_padding:
            self.image_padding = display_metrics.dp_to_px(ROUND_CORNER_PADDING_DP)
        else:
            self.image_padding = 0

        if barcode_format.is_square and image_view_width > image_view_height:
            image_view_width -= self.image_padding
            self.width_padding = True
        else:
            image_view_height -= self.image_padding
            self.width_padding = False

        max_width = barcode_format.max_width

        if barcode_format.is_square:
            self.image_height = self.image_width = min(image_view_height, min(max_width, image_view_width))
        elif image_view.width < max_width and not is_fullscreen:
            self.image_height = image_view_height
            self.image_width = image_view_width
        else:
            # Scale down the image to reduce the memory needed to produce it
            self.image_width = min(max_width, display_metrics.width_pixels)
            if image_view_width > 0:
                ratio = self.image_width / image_view_width
                self.image_height = int(image_view_height * ratio)
            else:
                self.image_height = image_view_height

        self.renderer = BarcodeImageRenderer(barcode_format, self.image_height, self.image_width)

    @property
    def success(self) -> bool:
        return self._is_successful

    def _fallback_string(self) -> str:
        payload = self.barcode_format.fallback_payload
        if payload is None:
            raise ValueError(f"No fallback known for barcode type {self.barcode_format.name}")
        return payload

    def do_in_background(self, is_cancelled: Callable[[], bool] = _never_cancelled) -> Optional[Image.Image]:
        """Render the barcode, falling back to an example payload once if allowed."""
        if not is_cancelled():
            image = self.renderer.generate(self.card_id)

            if image is not None:
                return image

            self._is_successful = False

            if self.show_fallback and not is_cancelled():
                log.info("Barcode generation failed, generating fallback...")
                self.card_id = self._fallback_string()
                return self.renderer.generate(self.card_id)

        # Cancelled or no fallback wanted: hand back a blank placeholder
        size = (max(self.image_width, 0), max(self.image_height, 0))
        try:
            return Image.new("RGBA", size)
        except MemoryError:
            log.warning("Insufficient memory for blank placeholder, %dx%d, %s",
                        size[0], size[1], self.barcode_format.name, exc_info=True)
            return None

    def __call__(self) -> Optional[Image.Image]:
        return self.do_in_background()

    def on_post_execute(self, result: Optional[Image.Image]) -> None:
        """Push the result into the surfaces; must run on the thread owning them."""
        log.info("Finished generating barcode image of type %s: %s", self.barcode_format.name, self.card_id)

        image_view = self._image_view_ref()
        if image_view is None:
            # The image surface no longer exists, nothing to do
            return

        pretty_name = self.barcode_format.pretty_name

        image_view.set_image(result)
        image_view.set_content_description(CONTENT_DESCRIPTION.format(pretty_name))
        text_view = self._text_view_ref() if self._text_view_ref is not None else None

        if result is not None:
            log.info("Displaying barcode")
            half = self.image_padding // 2
            if self.width_padding:
                image_view.set_padding(half, 0, half, 0)
            else:
                image_view.set_padding(0, half, 0, half)
            image_view.set_visibility(Visibility.VISIBLE)

            if self._is_successful:
                image_view.set_color_tint(None)
            else:
                image_view.set_color_tint(LIGHT_GRAY)

            if text_view is not None:
                text_view.set_visibility(Visibility.VISIBLE)
                text_view.set_text(pretty_name)
        else:
            log.info("Barcode generation failed, removing image from display")
            image_view.set_visibility(Visibility.GONE)
            if text_view is not None:
                text_view.set_visibility(Visibility.GONE)

        if self.callback is not None:
            self.callback(self._is_successful)
