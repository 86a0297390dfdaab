"""
Homesite – JSON document store for site settings.

One document per setting group, kept as ``<CONFIG_DIR>/<group>.json``.
A group that was never written reads as an empty document.
"""

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Protocol

from fastapi import Request

from app.exceptions import StorageError

logger = logging.getLogger(__name__)

Document = dict[str, Any]

_GROUP_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


class ConfigStore(Protocol):
    def read(self, group: str) -> Document: ...

    def write(self, group: str, document: Document) -> None: ...


class JsonFileConfigStore:
    """Filesystem-backed ConfigStore with atomic replace on write."""

    def __init__(self, config_dir: Path | str):
        self.config_dir = Path(config_dir)

    def path_for(self, group: str) -> Path:
        if not _GROUP_NAME.match(group):
            raise ValueError(f"Invalid setting group name: {group!r}")
        return self.config_dir / f"{group}.json"

    def read(self, group: str) -> Document:
        path = self.path_for(group)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.error("Error reading config file %s: %s", group, e)
            raise StorageError(f"Failed to read {group} settings") from e

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Config file %s is not valid JSON: %s", group, e)
            raise StorageError(f"Failed to read {group} settings") from e

    def write(self, group: str, document: Document) -> None:
        path = self.path_for(group)
        payload = json.dumps(document, indent=2, ensure_ascii=False)
        tmp_name = None
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            # Readers see either the previous file or the new one, never a partial write
            fd, tmp_name = tempfile.mkstemp(dir=self.config_dir, prefix=f".{group}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except OSError as e:
            logger.error("Error writing config file %s: %s", group, e)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write {group} settings") from e


def get_config_store(request: Request) -> ConfigStore:
    """FastAPI dependency: the store configured on the running app."""
    return request.app.state.config_store
