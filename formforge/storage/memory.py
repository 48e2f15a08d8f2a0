from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock

from formforge.schemas import FormCreate, FormRead, FormUpdate, ResponseCreate, ResponseRead
from formforge.storage.base import FormNotFoundError, FormStorage, new_record_id, new_share_url


class MemoryFormStorage(FormStorage):
    """Process-local store; create one per app or test and inject it."""

    def __init__(self) -> None:
        self._forms: dict[str, FormRead] = {}
        self._responses: dict[str, ResponseRead] = {}
        self._lock = Lock()

    async def create_form(self, payload: FormCreate) -> FormRead:
        now = datetime.now(timezone.utc)
        form = FormRead(
            id=new_record_id(),
            title=payload.title,
            description=payload.description,
            header_image=payload.header_image,
            questions=list(payload.questions),
            is_published=payload.is_published,
            share_url=new_share_url() if payload.is_published else None,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._forms[form.id] = form
        return form.model_copy(deep=True)

    async def get_form(self, form_id: str) -> FormRead | None:
        with self._lock:
            form = self._forms.get(form_id)
        return form.model_copy(deep=True) if form is not None else None

    async def get_form_by_share_url(self, share_url: str) -> FormRead | None:
        with self._lock:
            form = next((f for f in self._forms.values() if f.share_url == share_url), None)
        return form.model_copy(deep=True) if form is not None else None

    async def update_form(self, form_id: str, payload: FormUpdate) -> FormRead | None:
        changes = payload.changes()
        with self._lock:
            existing = self._forms.get(form_id)
            if existing is None:
                return None
            share_url = existing.share_url
            if changes.get("is_published") and share_url is None:
                share_url = new_share_url()
            updated = existing.model_copy(
                update={**changes, "share_url": share_url, "updated_at": datetime.now(timezone.utc)},
                deep=True,
            )
            self._forms[form_id] = updated
        return updated.model_copy(deep=True)

    async def delete_form(self, form_id: str) -> bool:
        with self._lock:
            if self._forms.pop(form_id, None) is None:
                return False
            for response_id in [rid for rid, r in self._responses.items() if r.form_id == form_id]:
                del self._responses[response_id]
        return True

    async def list_forms(self) -> list[FormRead]:
        with self._lock:
            forms = list(self._forms.values())
        return [form.model_copy(deep=True) for form in forms]

    async def create_response(self, form_id: str, payload: ResponseCreate) -> ResponseRead:
        with self._lock:
            form = self._forms.get(form_id)
            if form is None or not form.is_published:
                raise FormNotFoundError(form_id)
            response = ResponseRead(
                id=new_record_id(),
                form_id=form_id,
                answers=dict(payload.answers),
                email=payload.email,
                submitted_at=datetime.now(timezone.utc),
            )
            self._responses[response.id] = response
        return response.model_copy(deep=True)

    async def list_responses(self, form_id: str) -> list[ResponseRead]:
        with self._lock:
            responses = [r for r in self._responses.values() if r.form_id == form_id]
        return [response.model_copy(deep=True) for response in responses]
