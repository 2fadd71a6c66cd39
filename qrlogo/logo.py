"""Logo loading: resolve a PNG or SVG file to an RGBA raster of the logo slot size."""

import io
from enum import Enum
from pathlib import Path

import cairosvg
from PIL import Image, UnidentifiedImageError

from qrlogo.errors import AssetParseError, AssetReadError, ScalingError, UnsupportedFormatError
from qrlogo.logging import audit, get_logger, trace

log = get_logger("logo")


class LogoFormat(Enum):
    RASTER = "png"
    VECTOR = "svg"


EXTENSIONS = {".png": LogoFormat.RASTER, ".svg": LogoFormat.VECTOR}


def detect_format(path: str | Path) -> LogoFormat:
    """Pick the loader from the file extension (case-insensitive).

    Only looks at the name; the file is never opened here.
    """
    ext = Path(path).suffix.lower()
    try:
        return EXTENSIONS[ext]
    except KeyError:
        raise UnsupportedFormatError(
            f"unsupported logo format {ext or '(none)'!r}: use PNG or SVG", path
        ) from None


def _read_bytes(path: Path) -> bytes:
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError as exc:
        raise AssetReadError(f"cannot open logo: {exc.strerror or exc}", path) from exc


def _check_target(target_size: int):
    if target_size < 1:
        raise ScalingError(f"logo slot of {target_size}px cannot hold a logo")


@trace
def load_png(path: str | Path, target_size: int) -> Image.Image:
    """Decode a PNG logo and resize it to ``target_size x target_size``.

    Only the PNG decoder is tried, so a file that merely carries a ``.png``
    name is rejected. Resampling uses Lanczos.
    """
    path = Path(path)
    _check_target(target_size)
    data = _read_bytes(path)
    try:
        with Image.open(io.BytesIO(data), formats=["PNG"]) as img:
            img.load()
            logo = img.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as exc:
        raise AssetParseError(f"cannot decode PNG logo: {exc}", path) from exc

    native = logo.size
    if native != (target_size, target_size):
        logo = logo.resize((target_size, target_size), Image.LANCZOS)

    audit("logo.loaded", logger=log,
          path=str(path), format="png", native=f"{native[0]}x{native[1]}",
          size=f"{target_size}x{target_size}")
    return logo


@trace
def load_svg(path: str | Path, target_size: int) -> Image.Image:
    """Rasterize an SVG logo into exactly ``target_size x target_size`` pixels.

    The drawing's viewport is mapped onto (0, 0)-(target_size, target_size)
    and rendered with anti-aliasing by cairo.
    """
    path = Path(path)
    _check_target(target_size)
    data = _read_bytes(path)
    try:
        png = cairosvg.svg2png(
            bytestring=data,
            output_width=target_size,
            output_height=target_size,
        )
    except (SyntaxError, ValueError, TypeError, KeyError, IndexError, ZeroDivisionError) as exc:
        # expat/defusedxml errors subclass SyntaxError/ValueError;
        # a viewBox with fewer than four numbers raises IndexError
        raise AssetParseError(f"cannot parse SVG logo: {exc}", path) from exc

    with Image.open(io.BytesIO(png)) as img:
        img.load()
        logo = img.convert("RGBA")

    if logo.size != (target_size, target_size):
        log.debug("svg renderer returned %dx%d, normalising to %d",
                  logo.width, logo.height, target_size)
        logo = logo.resize((target_size, target_size), Image.LANCZOS)

    audit("logo.loaded", logger=log,
          path=str(path), format="svg", size=f"{target_size}x{target_size}")
    return logo


LOADERS = {LogoFormat.RASTER: load_png, LogoFormat.VECTOR: load_svg}


def load_logo(path: str | Path, target_size: int) -> Image.Image:
    """Load a logo of either supported format as a square RGBA raster.

    Raises:
        UnsupportedFormatError: extension is not .png/.svg (no I/O attempted).
        AssetReadError: the file cannot be opened.
        AssetParseError: the decoder or parser rejects the content.
    """
    fmt = detect_format(path)
    return LOADERS[fmt](path, target_size)
