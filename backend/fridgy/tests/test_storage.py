from fridgy.core.config import settings
from fridgy.storage import save_uploaded_image
from fridgy.tests.utils.utils import PNG_BYTES


def test_images_are_not_stored_by_default():
    assert save_uploaded_image("abc", PNG_BYTES, "image/png") is None


def test_stored_image_is_served_under_media(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "STORE_UPLOADED_IMAGES", True)
    monkeypatch.setattr(settings, "MEDIA_DIR", str(tmp_path / "media"))

    url = save_uploaded_image("abc", PNG_BYTES, "image/png")

    assert url == "/media/abc.png"
    assert (tmp_path / "media" / "abc.png").read_bytes() == PNG_BYTES
