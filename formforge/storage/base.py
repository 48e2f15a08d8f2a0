from __future__ import annotations

from pathlib import Path
from typing import Protocol
from uuid import uuid4

from formforge.schemas import FormCreate, FormRead, FormUpdate, ResponseCreate, ResponseRead


class FormNotFoundError(LookupError):
    """Raised when a form is missing, or unpublished where publication is required."""


def new_record_id() -> str:
    return str(uuid4())


def new_share_url() -> str:
    return uuid4().hex


class FormStorage(Protocol):
    async def create_form(self, payload: FormCreate) -> FormRead:
        ...

    async def get_form(self, form_id: str) -> FormRead | None:
        ...

    async def get_form_by_share_url(self, share_url: str) -> FormRead | None:
        ...

    async def update_form(self, form_id: str, payload: FormUpdate) -> FormRead | None:
        ...

    async def delete_form(self, form_id: str) -> bool:
        ...

    async def list_forms(self) -> list[FormRead]:
        ...

    async def create_response(self, form_id: str, payload: ResponseCreate) -> ResponseRead:
        ...

    async def list_responses(self, form_id: str) -> list[ResponseRead]:
        ...


class ObjectStorage(Protocol):
    def get_upload_url(self) -> str:
        ...

    def save_object(self, source_path: Path, original_name: str | None) -> str:
        ...

    def resolve_object(self, key: str) -> Path:
        ...
