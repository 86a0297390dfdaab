"""
Homesite – Read-modify-write of settings documents.

Groups that mix text fields with file-backed fields declare a
``GroupSchema``. On save, a file field takes the freshly uploaded
reference when the form carried a file, otherwise it keeps the value
already stored; text fields are taken verbatim from the submission.
Groups without a schema are replaced wholesale by the submitted body.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from app.services.config_store import ConfigStore, Document
from app.services.uploads import UploadRelay

logger = logging.getLogger(__name__)


class FieldKind(str, Enum):
    TEXT = "text"
    FILE = "file"


@dataclass(frozen=True)
class FieldSpec:
    """Maps one form field to a (possibly nested) document path."""
    path: tuple[str, ...]
    form_name: str
    kind: FieldKind = FieldKind.TEXT


@dataclass(frozen=True)
class GroupSchema:
    fields: tuple[FieldSpec, ...]

    @property
    def file_fields(self) -> list[str]:
        return [f.form_name for f in self.fields if f.kind is FieldKind.FILE]

    @property
    def text_fields(self) -> list[str]:
        return [f.form_name for f in self.fields if f.kind is FieldKind.TEXT]


def _lookup(document: Mapping[str, Any], path: tuple[str, ...]) -> tuple[bool, Any]:
    node: Any = document
    for key in path:
        if not isinstance(node, Mapping) or key not in node:
            return False, None
        node = node[key]
    return True, node


def _parent(document: dict, path: tuple[str, ...]) -> dict:
    node = document
    for key in path[:-1]:
        node = node.setdefault(key, {})
    return node


def merge_document(
    schema: GroupSchema,
    old: Mapping[str, Any],
    submitted: Mapping[str, Any],
    uploaded: Mapping[str, str],
) -> Document:
    """Build the new document for a merge group."""
    new: Document = {}
    for spec in schema.fields:
        parent = _parent(new, spec.path)
        if spec.kind is FieldKind.FILE:
            if spec.form_name in uploaded:
                parent[spec.path[-1]] = uploaded[spec.form_name]
                continue
            found, value = _lookup(old, spec.path)
        else:
            found = spec.form_name in submitted
            value = submitted.get(spec.form_name)
        if found:
            parent[spec.path[-1]] = value
    return new


class MergeEndpoint:
    """Save operation shared by every settings route."""

    def __init__(self, store: ConfigStore, relay: UploadRelay):
        self.store = store
        self.relay = relay

    def save(self, group, submitted: Mapping[str, Any], files: Mapping) -> Document:
        """Persist uploads, merge them with the stored document and write it back."""
        uploaded = self.relay.persist_all(dict(files))
        old = self.store.read(group.key)
        new = merge_document(group.schema, old, submitted, uploaded)
        self.store.write(group.key, new)
        logger.info("Saved %s (new files: %s)", group.label, ", ".join(uploaded) or "none")
        return new

    def replace(self, group, document: Document) -> Document:
        self.store.write(group.key, document)
        logger.info("Saved %s", group.label)
        return document
