from pathlib import Path

import pytest

from portfolio_admin.forms import PROJECT_IMAGE_FIELDS, project_draft
from portfolio_admin.pages import image_field
from portfolio_admin.uploads import UploadError

THUMBNAIL, IMAGES = PROJECT_IMAGE_FIELDS


@pytest.fixture
def fake_store(monkeypatch):
    def _store(path, *, max_bytes=None):
        name = Path(path).name
        if name.startswith("bad"):
            raise UploadError(f"{name} is not an image.")
        return f"/media/uploads/{name}"

    monkeypatch.setattr(image_field, "store_image", _store)


@pytest.fixture
def draft():
    return project_draft().load({"_id": "p1", "title": "Alpha", "images": ["/media/a.png"]})


def test_each_stored_file_is_appended(fake_store, draft):
    preview, dropdown, status = image_field.upload_into_field(draft, IMAGES, ["/tmp/b.png", "/tmp/c.png"])

    assert draft.get("images") == ["/media/a.png", "/media/uploads/b.png", "/media/uploads/c.png"]
    assert status == "✅ 2 images uploaded."
    assert "3 of 3" in preview
    assert dropdown["choices"][1] == ("2. b.png", 1)


def test_singular_upload_replaces(fake_store, draft):
    image_field.upload_into_field(draft, THUMBNAIL, "/tmp/one.png")
    _, _, status = image_field.upload_into_field(draft, THUMBNAIL, "/tmp/two.png")
    assert draft.get("thumbnail") == "/media/uploads/two.png"
    assert status == "✅ Image uploaded."


def test_rejected_files_are_reported_and_the_rest_kept(fake_store, draft):
    _, _, status = image_field.upload_into_field(draft, IMAGES, ["/tmp/bad.txt", "/tmp/good.png"])
    assert draft.get("images") == ["/media/a.png", "/media/uploads/good.png"]
    assert status.startswith("❌")
    assert "bad.txt" in status


def test_remove_by_position(draft):
    _, _, status = image_field.remove_from_field(draft, IMAGES, 0)
    assert draft.get("images") == []
    assert status == ""


def test_plural_remove_needs_a_choice(draft):
    _, _, status = image_field.remove_from_field(draft, IMAGES, None)
    assert status == "Choose an image to remove."
    assert draft.get("images") == ["/media/a.png"]


def test_handlers_wait_for_the_form(fake_store):
    _, _, status = image_field.upload_into_field(None, IMAGES, ["/tmp/b.png"])
    assert status.startswith("❌")
