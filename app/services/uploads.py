"""
Homesite – Upload relay for media assets.

Persists multipart file parts under the public upload directory with a
generated name and hands back the public URL that the settings document
should reference. Old assets are never removed.
"""

import logging
import os
import shutil
import uuid
from pathlib import Path

from fastapi import Request
from starlette.datastructures import FormData, UploadFile

from app.exceptions import StorageError, ValidationError

logger = logging.getLogger(__name__)


class UploadRelay:
    def __init__(self, upload_dir: Path | str, url_prefix: str = "/uploads"):
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def collect(self, form: FormData, field_names) -> dict[str, UploadFile]:
        """Pick the file parts that actually carry a file, at most one per field."""
        files: dict[str, UploadFile] = {}
        for name in field_names:
            parts = [
                part for part in form.getlist(name)
                if isinstance(part, UploadFile) and part.filename
            ]
            if len(parts) > 1:
                raise ValidationError(f"Only one file is allowed for field '{name}'")
            if parts:
                files[name] = parts[0]
        return files

    def persist(self, field: str, upload: UploadFile) -> str:
        """Write one upload to disk and return its public URL."""
        extension = os.path.splitext(upload.filename or "")[1].lower()
        stored_name = f"{uuid.uuid4().hex}{extension}"
        target = self.upload_dir / stored_name
        try:
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            upload.file.seek(0)
            with open(target, "wb") as buffer:
                shutil.copyfileobj(upload.file, buffer)
        except OSError as e:
            logger.error("Failed to store upload for field %s: %s", field, e)
            raise StorageError("Failed to store uploaded file") from e

        logger.info("Stored upload %s (%s, %d bytes)", stored_name, field, target.stat().st_size)
        return f"{self.url_prefix}/{stored_name}"

    def persist_all(self, files: dict[str, UploadFile]) -> dict[str, str]:
        return {field: self.persist(field, upload) for field, upload in files.items()}

    def resolve(self, url: str) -> Path | None:
        """Map a reference produced by ``persist`` back to its file, if it still exists."""
        prefix = f"{self.url_prefix}/"
        if not url or not url.startswith(prefix):
            return None
        name = url[len(prefix):].split("?", 1)[0]
        if not name or "/" in name or name.startswith("."):
            return None
        path = self.upload_dir / name
        return path if path.is_file() else None


def get_upload_relay(request: Request) -> UploadRelay:
    return request.app.state.upload_relay
