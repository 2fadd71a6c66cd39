"""End-to-end tests: render, decode with a real scanner, write."""

import string
import sys
import types

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st
from PIL import Image

from qrlogo.compositor import logo_slot
from qrlogo.errors import ScalingError, UnsupportedFormatError, VerificationError
from qrlogo.pipeline import PipelineConfig, render_qr, run
from qrlogo.verify import scan_opencv, scan_pyzbar, verify

from conftest import PAYLOAD, RED


class TestRoundTrip:

    @pytest.mark.parametrize("payload", [
        PAYLOAD,
        "HELLO WORLD 12345",
        "https://example.com/some/longer/path?with=query&and=more",
    ])
    def test_plain_qr_decodes_to_payload(self, payload):
        image = render_qr(payload, 256)
        result = scan_opencv(image)
        assert result.success, result.error
        assert result.decoded_data == payload

    @settings(max_examples=25, deadline=None)
    @given(payload=st.text(
        alphabet=string.ascii_letters + string.digits + string.punctuation + " ",
        min_size=1, max_size=60,
    ))
    def test_printable_payloads_decode(self, payload):
        result = scan_opencv(render_qr(payload, 400))
        assert result.success, result.error
        assert result.decoded_data == payload

    def test_pyzbar_failure_is_reported_not_raised(self, monkeypatch):
        def broken_decode(image):
            raise RuntimeError("zbar exploded")

        pyzbar_pkg = types.ModuleType("pyzbar")
        pyzbar_mod = types.ModuleType("pyzbar.pyzbar")
        pyzbar_mod.decode = broken_decode
        pyzbar_pkg.pyzbar = pyzbar_mod
        monkeypatch.setitem(sys.modules, "pyzbar", pyzbar_pkg)
        monkeypatch.setitem(sys.modules, "pyzbar.pyzbar", pyzbar_mod)

        result = scan_pyzbar(render_qr(PAYLOAD, 256))
        assert not result.success
        assert result.decoder == "pyzbar/zbar"
        assert "zbar exploded" in result.error

    def test_svg_logo_still_decodes(self, svg_logo):
        image = render_qr(PAYLOAD, 300, logo=str(svg_logo))
        assert scan_opencv(image).decoded_data == PAYLOAD

    def test_verify_flags_mismatch(self):
        results = verify(render_qr(PAYLOAD, 256), expected_data="https://other.example")
        assert not any(r.success for r in results)

    def test_blank_image_does_not_decode(self):
        result = scan_opencv(Image.new("RGBA", (256, 256), (255, 255, 255, 255)))
        assert not result.success
        assert result.error


class TestRun:

    def test_plain_qr_written(self, tmp_path):
        out = tmp_path / "qrcode.png"
        path = run(PipelineConfig(payload=PAYLOAD, output=str(out)))
        assert path == out
        with Image.open(out) as img:
            assert img.size == (256, 256)
            assert img.mode == "RGBA"
            assert scan_opencv(img).decoded_data == PAYLOAD

    def test_svg_logo_at_300(self, tmp_path, svg_logo):
        out = tmp_path / "logo.png"
        run(PipelineConfig(payload=PAYLOAD, logo=str(svg_logo), output=str(out), size=300))

        with Image.open(out) as img:
            arr = np.array(img)
        plain = np.array(render_qr(PAYLOAD, 300))

        assert arr.shape == (300, 300, 4)
        assert logo_slot(300).box == (120, 120, 180, 180)
        assert (arr[120:180, 120:180] == RED).all()

        outside = np.ones((300, 300), dtype=bool)
        outside[120:180, 120:180] = False
        assert (arr[outside] == plain[outside]).all()

    def test_png_logo_resized_to_slot(self, tmp_path, png_logo):
        image = render_qr(PAYLOAD, 256, logo=str(png_logo))
        plain = np.array(render_qr(PAYLOAD, 256))
        arr = np.array(image)
        changed = (arr != plain).any(axis=2)
        rows, cols = np.nonzero(changed)
        assert rows.min() >= 102 and rows.max() < 153
        assert cols.min() >= 102 and cols.max() < 153

    def test_too_small_writes_nothing(self, tmp_path):
        out = tmp_path / "small.png"
        with pytest.raises(ScalingError):
            run(PipelineConfig(payload=PAYLOAD, output=str(out), size=10))
        assert not out.exists()

    def test_bad_logo_writes_nothing(self, tmp_path):
        out = tmp_path / "qr.png"
        with pytest.raises(UnsupportedFormatError):
            run(PipelineConfig(payload=PAYLOAD, logo="logo.gif", output=str(out)))
        assert not out.exists()

    def test_verify_passes_for_plain_qr(self, tmp_path):
        out = tmp_path / "checked.png"
        run(PipelineConfig(payload=PAYLOAD, output=str(out), verify=True))
        assert out.exists()

    def test_verify_failure_writes_nothing(self, tmp_path, monkeypatch):
        blank = Image.new("RGBA", (256, 256), (255, 255, 255, 255))
        monkeypatch.setattr("qrlogo.pipeline.render_qr", lambda *args, **kwargs: blank)
        out = tmp_path / "broken.png"
        with pytest.raises(VerificationError):
            run(PipelineConfig(payload=PAYLOAD, output=str(out), verify=True))
        assert not out.exists()
