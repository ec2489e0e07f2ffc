"""Image ingestion: stage uploaded files locally, push them to object storage."""

import hashlib
import json
import logging
import shutil
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List

import httpx

from .errors import UpstreamFailure, ValidationError
from .metrics import IMAGE_UPLOADS

logger = logging.getLogger("food-ordering.images")

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/png", "image/gif"}


@dataclass
class StagedFile:
    path: Path
    original_name: str


@dataclass
class UploadResult:
    urls: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failures)


class CloudinaryStorage:
    """Signed uploads to the Cloudinary REST API."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder: str = "restro/images",
        client_factory=None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self._client_factory = client_factory or (lambda: httpx.Client(timeout=30.0))

    @property
    def upload_url(self) -> str:
        return f"https://api.cloudinary.com/v1_1/{self.cloud_name}/image/upload"

    def _sign(self, params: dict) -> str:
        payload = "&".join(f"{k}={params[k]}" for k in sorted(params))
        return hashlib.sha1((payload + self.api_secret).encode()).hexdigest()

    def upload(self, path: Path, original_name: str) -> str:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise UpstreamFailure("object-storage", "storage credentials are not configured")

        params = {
            "folder": self.folder,
            "public_id": f"{int(time.time() * 1000)}_{Path(original_name).stem}",
            "timestamp": str(int(time.time())),
        }
        data = dict(params, api_key=self.api_key, signature=self._sign(params))
        try:
            with self._client_factory() as client, open(path, "rb") as fh:
                r = client.post(self.upload_url, data=data, files={"file": (original_name, fh)})
                r.raise_for_status()
                return r.json()["secure_url"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise UpstreamFailure("object-storage", str(e))


def stage_uploads(upload_dir: Path, uploads) -> List[StagedFile]:
    """Write FastAPI ``UploadFile`` objects into ``upload_dir``."""
    for upload in uploads:
        if upload.content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(
                f"Invalid file type for {upload.filename}. Only JPEG, PNG, and GIF are allowed."
            )

    upload_dir.mkdir(parents=True, exist_ok=True)
    staged = []
    for upload in uploads:
        name = Path(upload.filename or "image").name
        # one path per staged file, even for repeated names
        target = upload_dir / f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}_{name}"
        with open(target, "wb") as out:
            shutil.copyfileobj(upload.file, out)
        staged.append(StagedFile(path=target, original_name=name))
    return staged


class ImageUploader:
    def __init__(
        self,
        storage,
        failure_log: Path,
        retries: int = 3,
        backoff_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.storage = storage
        self.failure_log = failure_log
        self.retries = retries
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def upload_images(self, files: List[StagedFile]) -> UploadResult:
        """Upload every file, collecting URLs and failed names separately.

        Uploaded local copies are removed; failed ones stay on disk and are
        appended to the failure log.
        """
        result = UploadResult()
        for staged in files:
            if not staged.path.exists():
                logger.warning(f"File not found: {staged.path}")
                self._record_failure(staged, "file not found")
                result.failures.append(staged.original_name)
                continue
            try:
                url = self._upload_with_retries(staged)
            except UpstreamFailure as e:
                self._record_failure(staged, str(e))
                result.failures.append(staged.original_name)
                IMAGE_UPLOADS.labels("FAILED").inc()
                continue
            result.urls.append(url)
            IMAGE_UPLOADS.labels("UPLOADED").inc()
            _delete_local_file(staged.path)
        return result

    def _upload_with_retries(self, staged: StagedFile) -> str:
        for attempt in range(1, self.retries + 1):
            try:
                url = self.storage.upload(staged.path, staged.original_name)
                logger.info(f"Uploaded {staged.original_name}: {url}")
                return url
            except UpstreamFailure as e:
                logger.warning(f"Attempt {attempt} failed for {staged.original_name}: {e}")
                if attempt == self.retries:
                    raise
                self._sleep(self.backoff_seconds * attempt)
        raise UpstreamFailure("object-storage", "no upload attempts configured")

    def _record_failure(self, staged: StagedFile, error: str):
        entry = {
            "file": staged.original_name,
            "path": str(staged.path),
            "error": error,
            "at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.failure_log.parent.mkdir(parents=True, exist_ok=True)
            with open(self.failure_log, "a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.error(f"Could not write upload failure log {self.failure_log}: {e}")


def _delete_local_file(path: Path):
    try:
        path.unlink()
    except OSError as e:
        logger.warning(f"Failed to delete local file {path}: {e}")
