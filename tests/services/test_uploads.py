"""Tests for the upload relay."""

import io

import pytest
from starlette.datastructures import FormData, UploadFile

from app.exceptions import StorageError, ValidationError
from app.services.uploads import UploadRelay


@pytest.fixture
def relay(tmp_path):
    return UploadRelay(tmp_path / "uploads", "/uploads")


def _upload(filename, content=b"bytes"):
    return UploadFile(file=io.BytesIO(content), filename=filename)


def test_collect_picks_only_real_files(relay):
    logo = _upload("logo.png")
    form = FormData([
        ("logo", logo),
        ("video", _upload("")),
        ("title", "Welcome"),
    ])

    assert relay.collect(form, ["video", "logo", "missing"]) == {"logo": logo}


def test_collect_rejects_two_files_for_one_field(relay):
    form = FormData([("photo", _upload("a.jpg")), ("photo", _upload("b.jpg"))])

    with pytest.raises(ValidationError):
        relay.collect(form, ["photo"])


def test_persist_generates_unique_names_and_keeps_extension(relay):
    first = relay.persist("photo", _upload("me.JPG", b"one"))
    second = relay.persist("photo", _upload("me.JPG", b"two"))

    assert first != second
    assert first.startswith("/uploads/") and first.endswith(".jpg")
    assert (relay.upload_dir / first.rsplit("/", 1)[1]).read_bytes() == b"one"
    assert (relay.upload_dir / second.rsplit("/", 1)[1]).read_bytes() == b"two"


def test_persist_without_extension(relay):
    url = relay.persist("video", _upload("clip"))
    assert "." not in url.rsplit("/", 1)[1]


def test_persist_all_maps_fields_to_urls(relay):
    urls = relay.persist_all({"video": _upload("v.mp4"), "logo": _upload("l.png")})

    assert set(urls) == {"video", "logo"}
    assert urls["video"].endswith(".mp4")
    assert urls["logo"].endswith(".png")


def test_persist_storage_fault_raises(tmp_path):
    blocker = tmp_path / "uploads"
    blocker.write_text("not a directory")
    relay = UploadRelay(blocker)

    with pytest.raises(StorageError):
        relay.persist("logo", _upload("l.png"))


def test_resolve_maps_url_back_to_file(relay):
    url = relay.persist("logo", _upload("l.png"))

    assert relay.resolve(url) == relay.upload_dir / url.rsplit("/", 1)[1]
    assert relay.resolve(url + "?cacheBust=1") == relay.upload_dir / url.rsplit("/", 1)[1]


@pytest.mark.parametrize("url", ["", "/elsewhere/l.png", "/uploads/", "/uploads/../secret", "/uploads/nope.png"])
def test_resolve_rejects_unknown_references(relay, url):
    assert relay.resolve(url) is None
