"""Pipeline: payload -> module matrix -> QR raster -> (logo) -> PNG file."""

from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from qrlogo.compositor import composite_logo, logo_slot
from qrlogo.errors import VerificationError
from qrlogo.generator import generate_qr
from qrlogo.logging import audit, get_logger, trace
from qrlogo.logo import load_logo
from qrlogo.sink import save_png

log = get_logger("pipeline")

DEFAULT_OUTPUT = "qrcode.png"
DEFAULT_SIZE = 256


@dataclass(frozen=True)
class PipelineConfig:
    """One invocation's settings, parsed once at entry."""
    payload: str
    logo: str = ""
    output: str = DEFAULT_OUTPUT
    size: int = DEFAULT_SIZE
    border: int = 0
    verify: bool = False


@trace
def render_qr(payload: str, size: int, logo: str = "", border: int = 0) -> Image.Image:
    """Build the final raster in memory. An empty *logo* skips the overlay."""
    qr_image = generate_qr(payload, size, border=border)
    if not logo:
        return qr_image

    logo_image = load_logo(logo, logo_slot(size).side)
    return composite_logo(qr_image, logo_image)


def _check_scan(image: Image.Image, payload: str):
    from qrlogo.verify import verify

    results = verify(image, expected_data=payload)
    if not any(r.success for r in results):
        reasons = "; ".join(f"{r.decoder}: {r.error}" for r in results)
        raise VerificationError(f"no decoder read back the payload ({reasons})")


@trace
def run(config: PipelineConfig) -> Path:
    """Render, optionally scan-verify, then write the PNG.

    The output file is only touched once every earlier stage has succeeded.
    """
    image = render_qr(config.payload, config.size, logo=config.logo, border=config.border)
    if config.verify:
        _check_scan(image, config.payload)
    path = save_png(image, config.output)
    audit("pipeline.done", logger=log,
          data=config.payload[:80], size=config.size,
          logo=config.logo or None, output=str(path))
    return path
