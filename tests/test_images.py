"""Tests for staging and uploading images."""

import io
import json

import httpx
import pytest
from starlette.datastructures import Headers, UploadFile

from food_ordering.errors import UpstreamFailure, ValidationError
from food_ordering.images import CloudinaryStorage, ImageUploader, StagedFile, stage_uploads

from conftest import FakeStorage


class FlakyStorage(FakeStorage):
    """Fails the first ``failures`` attempts for every file."""

    def __init__(self, failures):
        super().__init__()
        self.remaining = failures

    def upload(self, path, original_name):
        self.calls.append(original_name)
        if self.remaining:
            self.remaining -= 1
            raise UpstreamFailure("object-storage", "timeout")
        return f"https://images.example.com/{original_name}"


def _staged(tmp_path, *names):
    files = []
    for name in names:
        path = tmp_path / name
        path.write_bytes(b"\x89PNG")
        files.append(StagedFile(path=path, original_name=name))
    return files


def _upload(name, content_type="image/png"):
    return UploadFile(
        io.BytesIO(b"\x89PNG"), filename=name, headers=Headers({"content-type": content_type})
    )


@pytest.fixture
def sleeps():
    return []


def make_uploader(tmp_path, storage, sleeps, retries=3, backoff=1.0):
    return ImageUploader(
        storage,
        failure_log=tmp_path / "failed.log",
        retries=retries,
        backoff_seconds=backoff,
        sleep=sleeps.append,
    )


class TestUploadImages:
    def test_partial_failure(self, tmp_path, sleeps):
        storage = FakeStorage(fail_names={"two.png"})
        uploader = make_uploader(tmp_path, storage, sleeps)
        one, two, three = _staged(tmp_path, "one.png", "two.png", "three.png")

        result = uploader.upload_images([one, two, three])

        assert result.urls == [
            "https://images.example.com/one.png",
            "https://images.example.com/three.png",
        ]
        assert result.failures == ["two.png"]
        assert result.partial
        assert storage.calls.count("two.png") == 3
        assert not one.path.exists() and not three.path.exists()
        assert two.path.exists()

    def test_failure_logged(self, tmp_path, sleeps):
        uploader = make_uploader(tmp_path, FakeStorage(fail_names={"bad.png"}), sleeps)
        (bad,) = _staged(tmp_path, "bad.png")

        uploader.upload_images([bad])

        lines = (tmp_path / "failed.log").read_text().splitlines()
        entry = json.loads(lines[0])
        assert entry["file"] == "bad.png"
        assert entry["path"] == str(bad.path)
        assert "rejected bad.png" in entry["error"]

    def test_linear_backoff_between_attempts(self, tmp_path, sleeps):
        uploader = make_uploader(tmp_path, FakeStorage(fail_names={"bad.png"}), sleeps)

        uploader.upload_images(_staged(tmp_path, "bad.png"))

        assert sleeps == [1.0, 2.0]

    def test_recovers_on_retry(self, tmp_path, sleeps):
        storage = FlakyStorage(failures=2)
        uploader = make_uploader(tmp_path, storage, sleeps)

        result = uploader.upload_images(_staged(tmp_path, "slow.png"))

        assert result.urls == ["https://images.example.com/slow.png"]
        assert not result.partial
        assert len(storage.calls) == 3

    def test_missing_local_file(self, tmp_path, sleeps):
        storage = FakeStorage()
        uploader = make_uploader(tmp_path, storage, sleeps)

        result = uploader.upload_images([StagedFile(path=tmp_path / "gone.png", original_name="gone.png")])

        assert result.failures == ["gone.png"]
        assert storage.calls == []

    def test_no_files(self, tmp_path, sleeps):
        result = make_uploader(tmp_path, FakeStorage(), sleeps).upload_images([])
        assert result.urls == [] and result.failures == []


class TestStageUploads:
    def test_writes_prefixed_files(self, tmp_path):
        staged = stage_uploads(tmp_path / "uploads", [_upload("dish.png")])

        assert staged[0].original_name == "dish.png"
        assert staged[0].path.parent == tmp_path / "uploads"
        assert staged[0].path.name.endswith("_dish.png")
        assert staged[0].path.read_bytes() == b"\x89PNG"

    def test_rejects_non_image(self, tmp_path):
        with pytest.raises(ValidationError):
            stage_uploads(tmp_path / "uploads", [_upload("dish.png"), _upload("notes.txt", "text/plain")])

        assert not (tmp_path / "uploads").exists()

    def test_repeated_names_get_separate_paths(self, tmp_path, sleeps, monkeypatch):
        monkeypatch.setattr("food_ordering.images.time.time", lambda: 1_700_000_000.0)
        first = _upload("image.png")
        second = UploadFile(
            io.BytesIO(b"\x89PNG-other"), filename="image.png", headers=Headers({"content-type": "image/png"})
        )

        staged = stage_uploads(tmp_path / "uploads", [first, second])

        assert staged[0].path != staged[1].path
        assert staged[1].path.read_bytes() == b"\x89PNG-other"

        storage = FakeStorage()
        result = make_uploader(tmp_path, storage, sleeps).upload_images(staged)

        assert len(result.urls) == 2
        assert result.failures == []
        assert storage.calls == ["image.png", "image.png"]


class TestCloudinaryStorage:
    def test_returns_secure_url(self, tmp_path):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"secure_url": "https://res.cloudinary.com/demo/dish.png"})

        storage = CloudinaryStorage(
            "demo", "key", "secret",
            client_factory=lambda: httpx.Client(transport=httpx.MockTransport(handler)),
        )
        (staged,) = _staged(tmp_path, "dish.png")

        assert storage.upload(staged.path, "dish.png") == "https://res.cloudinary.com/demo/dish.png"
        assert str(seen[0].url) == "https://api.cloudinary.com/v1_1/demo/image/upload"

    def test_http_error(self, tmp_path):
        storage = CloudinaryStorage(
            "demo", "key", "secret",
            client_factory=lambda: httpx.Client(
                transport=httpx.MockTransport(lambda request: httpx.Response(401))
            ),
        )
        (staged,) = _staged(tmp_path, "dish.png")

        with pytest.raises(UpstreamFailure):
            storage.upload(staged.path, "dish.png")

    def test_unconfigured(self, tmp_path):
        with pytest.raises(UpstreamFailure):
            CloudinaryStorage("", "", "").upload(tmp_path / "x.png", "x.png")
