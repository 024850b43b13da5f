import pytest
from google.api_core.exceptions import ServiceUnavailable

from portfolio_admin import uploads
from portfolio_admin.uploads import UploadError, store_image, upload_paths


@pytest.fixture
def stored(monkeypatch):
    calls = []

    def _fake_upload(data, blob_name, *, content_type=None, cache_seconds=0):
        calls.append({"data": data, "blob_name": blob_name, "content_type": content_type})
        return blob_name

    monkeypatch.setattr(uploads, "upload_bytes", _fake_upload)
    return calls


@pytest.fixture
def photo(tmp_path):
    path = tmp_path / "my photo.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake")
    return path


def test_image_is_stored_under_a_unique_media_path(stored, photo):
    reference = store_image(photo)

    assert reference.startswith("/media/uploads/")
    assert reference.endswith("/my-photo.png")
    assert stored[0]["content_type"] == "image/png"
    assert stored[0]["data"] == photo.read_bytes()


def test_two_uploads_of_the_same_file_get_distinct_references(stored, photo):
    assert store_image(photo) != store_image(photo)


def test_public_base_url_is_used_when_configured(monkeypatch, stored, photo):
    monkeypatch.setenv("PUBLIC_MEDIA_BASE_URL", "https://cdn.example.com/")
    assert store_image(photo).startswith("https://cdn.example.com/uploads/")


def test_non_images_are_rejected(stored, tmp_path):
    notes = tmp_path / "notes.txt"
    notes.write_text("hello")
    with pytest.raises(UploadError, match="not an image"):
        store_image(notes)
    assert stored == []


def test_empty_files_are_rejected(stored, tmp_path):
    empty = tmp_path / "blank.jpg"
    empty.write_bytes(b"")
    with pytest.raises(UploadError, match="empty"):
        store_image(empty)


def test_size_limit(stored, photo, monkeypatch):
    with pytest.raises(UploadError, match="larger than"):
        store_image(photo, max_bytes=4)
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "4")
    with pytest.raises(UploadError):
        store_image(photo)


def test_missing_file_is_an_upload_error(stored, tmp_path):
    with pytest.raises(UploadError, match="Could not read"):
        store_image(tmp_path / "gone.png")


def test_storage_failures_become_upload_errors(monkeypatch, photo):
    def _unavailable(*args, **kwargs):
        raise ServiceUnavailable("bucket offline")

    monkeypatch.setattr(uploads, "upload_bytes", _unavailable)
    with pytest.raises(UploadError, match="Could not store"):
        store_image(photo)


def test_upload_paths_accepts_single_and_multiple(tmp_path):
    class _Wrapped:
        name = str(tmp_path / "b.png")

    assert upload_paths(None) == []
    assert upload_paths(str(tmp_path / "a.png")) == [tmp_path / "a.png"]
    assert upload_paths([str(tmp_path / "a.png"), None, _Wrapped()]) == [tmp_path / "a.png", tmp_path / "b.png"]
