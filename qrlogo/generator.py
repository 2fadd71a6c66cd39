"""QR generation: encode a payload to a module matrix and block-scale it to pixels."""

from enum import Enum

import numpy as np
import qrcode
import qrcode.constants
from qrcode.exceptions import DataOverflowError
from PIL import Image

from qrlogo.errors import EncodingError, ScalingError
from qrlogo.logging import audit, get_logger, trace

log = get_logger("generator")

DARK = (0, 0, 0, 255)
LIGHT = (255, 255, 255, 255)


class ECCLevel(Enum):
    L = qrcode.constants.ERROR_CORRECT_L  # 7%
    M = qrcode.constants.ERROR_CORRECT_M  # 15%
    Q = qrcode.constants.ERROR_CORRECT_Q  # 25%
    H = qrcode.constants.ERROR_CORRECT_H  # 30%


ECC_NAMES = {"L": ECCLevel.L, "M": ECCLevel.M, "Q": ECCLevel.Q, "H": ECCLevel.H}

# A logo occludes part of the symbol; only H reliably survives that.
LOGO_ECC = "H"


@trace
def encode_matrix(payload: str, ecc: str = LOGO_ECC, border: int = 0) -> np.ndarray:
    """Encode *payload* into a read-only square boolean matrix (True = dark).

    The smallest version that fits the payload at *ecc* is chosen. *border*
    adds a quiet zone of light modules around the symbol and is part of the
    returned matrix.

    Raises:
        EncodingError: empty payload, negative border, or payload too large
            for version 40 at this level.
    """
    if not payload:
        raise EncodingError("payload must be a non-empty string")
    if border < 0:
        raise EncodingError(f"quiet zone must be >= 0 modules, got {border}")
    try:
        ecc_level = ECC_NAMES[ecc.upper()]
    except KeyError:
        raise EncodingError(f"unknown error correction level {ecc!r}") from None

    qr = qrcode.QRCode(
        version=None,
        error_correction=ecc_level.value,
        box_size=1,
        border=border,
    )
    qr.add_data(payload)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as exc:
        raise EncodingError(
            f"payload of {len(payload)} characters does not fit in any QR version "
            f"at level {ecc_level.name}: {exc}"
        ) from exc

    matrix = np.array(qr.get_matrix(), dtype=bool)
    matrix.flags.writeable = False

    audit("qr.encoded", logger=log,
          data=payload[:80], version=qr.version, modules=matrix.shape[0],
          ecc=ecc_level.name, border=border)
    return matrix


def block_index(size: int, modules: int) -> np.ndarray:
    """Map each of *size* pixels on one axis to its source module.

    Pixel ``p`` belongs to module ``floor(p * modules / size)``, so every
    module gets a contiguous run of floor or ceil(size / modules) pixels and
    every pixel is covered exactly once.
    """
    return (np.arange(size, dtype=np.int64) * modules) // size


@trace
def rasterize_matrix(matrix: np.ndarray, size: int) -> Image.Image:
    """Scale a module matrix to an exact ``size x size`` RGBA raster.

    Nearest-neighbour block scaling only: dark modules become opaque black
    blocks, light modules opaque white. No interpolation.

    Raises:
        ScalingError: *size* is smaller than the module count.
    """
    modules = matrix.shape[0]
    if size < 1:
        raise ScalingError(f"size must be a positive number of pixels, got {size}")
    if size < modules:
        raise ScalingError(
            f"can not scale a {modules}x{modules} symbol to {size}x{size} pixels; "
            f"size must be at least {modules}"
        )

    idx = block_index(size, modules)
    dark = matrix[np.ix_(idx, idx)]
    pixels = np.where(dark[..., None], np.array(DARK, dtype=np.uint8), np.array(LIGHT, dtype=np.uint8))
    img = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))

    audit("qr.rasterized", logger=log,
          modules=f"{modules}x{modules}", image_px=f"{size}x{size}",
          exact_blocks=(size % modules == 0))
    return img


@trace
def generate_qr(payload: str, size: int, border: int = 0) -> Image.Image:
    """Encode *payload* at level H and render it as a ``size x size`` raster."""
    matrix = encode_matrix(payload, ecc=LOGO_ECC, border=border)
    return rasterize_matrix(matrix, size)
