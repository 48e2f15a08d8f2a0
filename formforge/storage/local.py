from __future__ import annotations

import re
import shutil
from os.path import commonpath
from pathlib import Path
from uuid import uuid4

from formforge.storage.base import ObjectStorage

_SAFE_SUFFIX = re.compile(r"^\.[a-z0-9]{1,10}$")


class LocalObjectStorage(ObjectStorage):
    def __init__(self, root_dir: str | Path, upload_endpoint: str = "/api/upload") -> None:
        self.root_dir = Path(root_dir).resolve()
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self.upload_endpoint = upload_endpoint

    def _resolve_key(self, key: str) -> Path:
        path = (self.root_dir / key).resolve()
        if commonpath([str(path), str(self.root_dir)]) != str(self.root_dir) or path == self.root_dir:
            raise ValueError("Invalid object key path")
        return path

    def get_upload_url(self) -> str:
        return self.upload_endpoint

    def save_object(self, source_path: Path, original_name: str | None) -> str:
        suffix = Path(original_name or "").suffix.lower()
        if not _SAFE_SUFFIX.match(suffix):
            suffix = ""
        key = f"{uuid4().hex}{suffix}"
        target = self._resolve_key(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source_path, target)
        return key

    def resolve_object(self, key: str) -> Path:
        target = self._resolve_key(key)
        if not target.is_file():
            raise FileNotFoundError(key)
        return target
