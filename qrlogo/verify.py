"""Scan verification: read a rendered QR raster back with real decoders."""

import time
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image, ImageOps

from qrlogo.logging import audit, get_logger, trace

log = get_logger("verify")

# Decoders need a light margin around the symbol and a few pixels per module.
MIN_SCAN_PX = 400


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = ""
    error: str | None = None


def prepare_for_scan(image: Image.Image) -> Image.Image:
    """Flatten onto white, add a quiet zone and upscale small rasters."""
    rgba = image.convert("RGBA")
    flat = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
    flat.alpha_composite(rgba)
    flat = flat.convert("RGB")

    pad = max(8, flat.width // 6)
    padded = ImageOps.expand(flat, border=pad, fill=(255, 255, 255))
    if padded.width < MIN_SCAN_PX:
        factor = -(-MIN_SCAN_PX // padded.width)
        padded = padded.resize((padded.width * factor, padded.height * factor), Image.NEAREST)
    return padded


def _result(decoder: str, start: float, data: str | None = None, error: str | None = None) -> ScanResult:
    elapsed = (time.perf_counter() - start) * 1000
    success = data is not None
    if success:
        audit("scan.verified", logger=log, decoder=decoder, success=True,
              time_ms=round(elapsed, 1), data=data[:80])
    else:
        audit("scan.verified", logger=log, decoder=decoder, success=False,
              time_ms=round(elapsed, 1), error=error)
    return ScanResult(success=success, decoded_data=data, decode_time_ms=elapsed,
                      decoder=decoder, error=error)


@trace
def scan_opencv(image: Image.Image) -> ScanResult:
    """Scan with OpenCV's built-in QR detector."""
    start = time.perf_counter()
    try:
        arr = np.array(prepare_for_scan(image))
        gray = cv2.cvtColor(arr, cv2.COLOR_RGB2GRAY)
        data, _points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    except cv2.error as e:
        return _result("opencv", start, error=str(e))
    if data:
        return _result("opencv", start, data=data)
    return _result("opencv", start, error="No QR code detected")


@trace
def scan_pyzbar(image: Image.Image) -> ScanResult:
    """Scan with pyzbar (wraps ZBar). Needs the zbar shared library."""
    start = time.perf_counter()
    try:
        from pyzbar.pyzbar import decode as pyzbar_decode
    except ImportError as e:
        return _result("pyzbar/zbar", start, error=f"decoder unavailable: {e}")

    try:
        results = pyzbar_decode(prepare_for_scan(image))
    except Exception as e:
        return _result("pyzbar/zbar", start, error=str(e))
    if results:
        return _result("pyzbar/zbar", start,
                       data=results[0].data.decode("utf-8", errors="replace"))
    return _result("pyzbar/zbar", start, error="No QR code detected")


SCANNERS = (scan_opencv, scan_pyzbar)


@trace
def verify(image: Image.Image, expected_data: str | None = None) -> list[ScanResult]:
    """Run every decoder on *image*.

    If *expected_data* is given, a decode that returns anything else counts
    as a failure.
    """
    results = []
    for scanner in SCANNERS:
        result = scanner(image)
        if result.success and expected_data is not None and result.decoded_data != expected_data:
            result.success = False
            result.error = f"Data mismatch: got '{result.decoded_data}', expected '{expected_data}'"
        results.append(result)
    return results
