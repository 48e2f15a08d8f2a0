from __future__ import annotations

from formforge.config import UPLOAD_ENDPOINT, UPLOAD_ROOT
from formforge.storage.base import FormNotFoundError, FormStorage, ObjectStorage
from formforge.storage.local import LocalObjectStorage
from formforge.storage.memory import MemoryFormStorage
from formforge.storage.sql import SqlFormStorage

object_storage: ObjectStorage = LocalObjectStorage(UPLOAD_ROOT, upload_endpoint=UPLOAD_ENDPOINT)

__all__ = [
    "FormNotFoundError",
    "FormStorage",
    "LocalObjectStorage",
    "MemoryFormStorage",
    "ObjectStorage",
    "SqlFormStorage",
    "object_storage",
]
