import pytest

from registration.errors import StoreError
from registration.roster import LogoFile
from registration.storage import LocalBlobStorage, logo_object_key, prepare_logo


def test_logo_key_is_prefixed_with_milliseconds():
    assert logo_object_key("crest.png", now=1700000000.5) == "1700000000500-crest.png"


@pytest.mark.parametrize(
    "filename, expected",
    [
        ("../../etc/passwd", "1000-passwd"),
        ("My Team Logo (final).PNG", "1000-My-Team-Logo-final-.PNG"),
        ("", "1000-logo"),
    ],
)
def test_logo_key_keeps_only_a_safe_basename(filename, expected):
    assert logo_object_key(filename, now=1) == expected


def test_local_storage_writes_file_and_builds_url(tmp_path):
    storage = LocalBlobStorage(tmp_path)
    storage.upload("team-logos", "1-crest.png", b"png-bytes", "image/png")
    assert (tmp_path / "team-logos" / "1-crest.png").read_bytes() == b"png-bytes"
    assert storage.get_public_url("team-logos", "1-crest.png") == "/static/uploads/team-logos/1-crest.png"


def test_local_storage_refuses_to_overwrite(tmp_path):
    storage = LocalBlobStorage(tmp_path)
    storage.upload("team-logos", "1-crest.png", b"first", "image/png")
    with pytest.raises(StoreError):
        storage.upload("team-logos", "1-crest.png", b"second", "image/png")
    assert (tmp_path / "team-logos" / "1-crest.png").read_bytes() == b"first"


def test_prepare_logo_passes_png_through():
    logo = LogoFile("crest.png", "image/png", b"png")
    assert prepare_logo(logo) is logo


def test_prepare_logo_normalises_jpeg_content_type():
    prepared = prepare_logo(LogoFile("crest.JPG", "image/pjpeg", b"jpg"))
    assert prepared.content_type == "image/jpeg"
    assert prepared.data == b"jpg"


def test_prepare_logo_reports_unreadable_heic():
    with pytest.raises(StoreError):
        prepare_logo(LogoFile("crest.heic", "image/heic", b"not really heic"))


class _FakeBlob:
    def __init__(self, name, uploads):
        self.name = name
        self.uploads = uploads
        self.cache_control = None

    def upload_from_file(self, handle, content_type):
        self.uploads.append((self.name, handle.read(), content_type))

    def patch(self):
        self.uploads.append((self.name, "patched", self.cache_control))


class _FakeClient:
    uploads: list = []

    def bucket(self, name):
        client = self

        class _Bucket:
            def blob(self, object_name):
                return _FakeBlob(f"{name}/{object_name}", client.uploads)

        return _Bucket()


def test_gcs_storage_uploads_under_bucket_prefix(monkeypatch):
    from google.cloud import storage as gcs

    from registration.storage import GcsBlobStorage

    _FakeClient.uploads = []
    monkeypatch.setattr(gcs, "Client", _FakeClient)
    storage = GcsBlobStorage("club-assets")

    storage.upload("team-logos", "1-crest.png", b"png", "image/png")

    assert _FakeClient.uploads[0] == ("club-assets/team-logos/1-crest.png", b"png", "image/png")
    assert _FakeClient.uploads[1][1] == "patched"
    assert storage.get_public_url("team-logos", "1-crest.png") == (
        "https://storage.googleapis.com/club-assets/team-logos/1-crest.png"
    )
