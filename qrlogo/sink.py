"""Write the final raster as an 8-bit RGBA PNG."""

import io
from pathlib import Path

from PIL import Image

from qrlogo.errors import WriteError
from qrlogo.logging import audit, get_logger, trace

log = get_logger("sink")


@trace
def save_png(image: Image.Image, path: str | Path) -> Path:
    """Encode *image* as PNG and write it to *path*, creating or truncating it.

    The PNG is fully encoded in memory before the target is opened, so an
    encoder failure never leaves a truncated file behind.
    """
    path = Path(path)
    buffer = io.BytesIO()
    try:
        image.convert("RGBA").save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise WriteError(f"cannot encode PNG: {exc}", path) from exc

    payload = buffer.getvalue()
    try:
        with open(path, "wb") as fh:
            fh.write(payload)
    except OSError as exc:
        raise WriteError(f"cannot write output: {exc.strerror or exc}", path) from exc

    audit("qr.saved", logger=log, path=str(path),
          image_px=f"{image.width}x{image.height}", bytes=len(payload))
    return path
