"""Tests for share links and their QR codes."""

from unittest.mock import patch

from PIL import Image

from brick_tally.config import Config
from brick_tally.utils.qr_generator import (
    build_share_url,
    make_share_qr,
    save_share_qr,
    slug_from_share_url,
)

PNG_MAGIC = b"\x89PNG"


class TestShareUrl:
    def test_uses_configured_prefix(self):
        with patch.object(Config, "SHARE_BASE_URL", "https://tally.test/s/"):
            assert build_share_url("abc123") == "https://tally.test/s/abc123"

    def test_explicit_prefix(self):
        assert build_share_url("abc", base_url="x://") == "x://abc"

    def test_slug_from_full_link(self):
        assert slug_from_share_url(
            "https://tally.test/s/abc123", base_url="https://tally.test/s/"
        ) == "abc123"

    def test_slug_from_bare_token(self):
        assert slug_from_share_url("  abc123 ") == "abc123"

    def test_slug_from_foreign_link(self):
        assert slug_from_share_url(
            "https://elsewhere.test/s/abc123/", base_url="brickup://s/"
        ) == "abc123"

    def test_round_trip_with_default_prefix(self):
        assert slug_from_share_url(build_share_url("V1StGXR8_Z5j")) \
            == "V1StGXR8_Z5j"


class TestShareQr:
    def test_png_buffer(self):
        buf = make_share_qr("brickup://s/abc123")
        assert buf.read(4) == PNG_MAGIC

    def test_box_size_scales_image(self):
        small = Image.open(make_share_qr("brickup://s/abc", box_size=2))
        large = Image.open(make_share_qr("brickup://s/abc", box_size=10))
        assert large.size[0] == small.size[0] * 5

    def test_save(self, tmp_path):
        out = save_share_qr("brickup://s/abc123", tmp_path / "qr" / "s.png")
        assert out.endswith("s.png")
        assert (tmp_path / "qr" / "s.png").read_bytes()[:4] == PNG_MAGIC
