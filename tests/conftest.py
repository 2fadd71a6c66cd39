"""Shared fixtures: logo files on disk and a plain reference QR."""

import logging

import pytest
from PIL import Image

from qrlogo.generator import generate_qr

PAYLOAD = "https://example.com"
RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)

RED_SQUARE_SVG = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100" viewBox="0 0 100 100">
  <rect x="0" y="0" width="100" height="100" fill="#ff0000"/>
</svg>
"""


@pytest.fixture(autouse=True)
def _reset_qrlogo_logging():
    """Drop handlers installed by the CLI so tests do not leak log output."""
    yield
    root = logging.getLogger("qrlogo")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def svg_logo(tmp_path):
    path = tmp_path / "logo.svg"
    path.write_text(RED_SQUARE_SVG, encoding="utf-8")
    return path


@pytest.fixture
def png_logo(tmp_path):
    path = tmp_path / "logo.png"
    Image.new("RGBA", (100, 100), BLUE).save(path)
    return path


@pytest.fixture
def plain_qr_256():
    return generate_qr(PAYLOAD, 256)
