import base64

import pytest

from utils.qr_render import QRRenderer

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_render_png_returns_png_bytes():
    png = QRRenderer().render_png("2@abc,def,ghi")
    assert png.startswith(PNG_SIGNATURE)


def test_render_data_url():
    url = QRRenderer(box_size=4).render_data_url("2@abc,def,ghi")
    prefix = "data:image/png;base64,"
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix):]).startswith(PNG_SIGNATURE)


def test_empty_token_rejected():
    with pytest.raises(ValueError):
        QRRenderer().render_png("")
