"""Logo slot geometry and "over" compositing of the logo onto the QR raster."""

from typing import NamedTuple

from PIL import Image

from qrlogo.logging import audit, get_logger, trace

log = get_logger("compositor")

# Logo edge is 1/5 of the QR edge (20%), well inside level-H headroom.
LOGO_FRACTION_DIVISOR = 5


class LogoSlot(NamedTuple):
    x: int
    y: int
    side: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        return (self.x, self.y, self.x + self.side, self.y + self.side)


def logo_slot(size: int) -> LogoSlot:
    """Centered square slot for the logo on a ``size x size`` QR raster.

    Integer division throughout: an odd remainder biases the slot one pixel
    toward the top-left.
    """
    side = size // LOGO_FRACTION_DIVISOR
    offset = (size - side) // 2
    return LogoSlot(offset, offset, side)


@trace
def composite_logo(qr_image: Image.Image, logo_image: Image.Image) -> Image.Image:
    """Return a copy of *qr_image* with *logo_image* blended into the center slot.

    The logo is read from its own origin. At most ``side x side`` source pixels
    are used; a smaller logo only fills the top-left part of the slot.
    Neither input is modified.
    """
    result = qr_image.convert("RGBA")
    slot = logo_slot(result.width)
    logo = logo_image.convert("RGBA")

    w = min(slot.side, logo.width)
    h = min(slot.side, logo.height)
    if (w, h) != (slot.side, slot.side):
        log.warning("logo is %dx%d, slot is %dx%d; drawing %dx%d",
                    logo.width, logo.height, slot.side, slot.side, w, h)
    if w > 0 and h > 0:
        result.alpha_composite(logo, dest=(slot.x, slot.y), source=(0, 0, w, h))

    audit("logo.composited", logger=log,
          qr_size=f"{result.width}x{result.height}",
          slot=f"{slot.side}x{slot.side}@({slot.x},{slot.y})",
          drawn=f"{w}x{h}")
    return result
