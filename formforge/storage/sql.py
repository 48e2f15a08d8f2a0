from __future__ import annotations

from datetime import datetime, timezone

from pydantic import TypeAdapter
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from formforge.models import Form, FormResponse
from formforge.schemas import FormCreate, FormRead, FormUpdate, Question, ResponseCreate, ResponseRead
from formforge.storage.base import FormNotFoundError, FormStorage, new_record_id, new_share_url

_questions_adapter: TypeAdapter[list[Question]] = TypeAdapter(list[Question])

_COLUMN_FIELDS = ("title", "description", "header_image", "is_published")


def _dump_questions(questions: list) -> list[dict]:
    return _questions_adapter.dump_python(questions, mode="json", by_alias=True)


def _to_form_read(form: Form) -> FormRead:
    return FormRead(
        id=form.id,
        title=form.title,
        description=form.description,
        header_image=form.header_image,
        questions=_questions_adapter.validate_python(form.questions_json or []),
        is_published=form.is_published,
        share_url=form.share_url,
        created_at=form.created_at,
        updated_at=form.updated_at,
    )


def _to_response_read(response: FormResponse) -> ResponseRead:
    return ResponseRead(
        id=response.id,
        form_id=response.form_id,
        answers=response.answers_json,
        email=response.email,
        submitted_at=response.submitted_at,
    )


class SqlFormStorage(FormStorage):
    """Form storage bound to one async session; callers own the session lifetime."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_form(self, payload: FormCreate) -> FormRead:
        now = datetime.now(timezone.utc)
        form = Form(
            id=new_record_id(),
            title=payload.title,
            description=payload.description,
            header_image=payload.header_image,
            questions_json=_dump_questions(payload.questions),
            is_published=payload.is_published,
            share_url=new_share_url() if payload.is_published else None,
            created_at=now,
            updated_at=now,
        )
        self.session.add(form)
        await self.session.commit()
        return _to_form_read(form)

    async def get_form(self, form_id: str) -> FormRead | None:
        form = await self.session.get(Form, form_id)
        return _to_form_read(form) if form is not None else None

    async def get_form_by_share_url(self, share_url: str) -> FormRead | None:
        form = await self.session.scalar(select(Form).where(Form.share_url == share_url))
        return _to_form_read(form) if form is not None else None

    async def update_form(self, form_id: str, payload: FormUpdate) -> FormRead | None:
        form = await self.session.get(Form, form_id)
        if form is None:
            return None

        changes = payload.changes()
        for field in _COLUMN_FIELDS:
            if field in changes:
                setattr(form, field, changes[field])
        if "questions" in changes:
            form.questions_json = _dump_questions(changes["questions"])
        if form.is_published and form.share_url is None:
            form.share_url = new_share_url()
        form.updated_at = datetime.now(timezone.utc)

        await self.session.commit()
        return _to_form_read(form)

    async def delete_form(self, form_id: str) -> bool:
        form = await self.session.get(Form, form_id)
        if form is None:
            return False
        await self.session.execute(delete(FormResponse).where(FormResponse.form_id == form_id))
        await self.session.delete(form)
        await self.session.commit()
        return True

    async def list_forms(self) -> list[FormRead]:
        rows = await self.session.scalars(select(Form).order_by(Form.created_at.asc(), Form.id.asc()))
        return [_to_form_read(form) for form in rows.all()]

    async def create_response(self, form_id: str, payload: ResponseCreate) -> ResponseRead:
        form = await self.session.get(Form, form_id, with_for_update=True)
        if form is None or not form.is_published:
            raise FormNotFoundError(form_id)

        response = FormResponse(
            id=new_record_id(),
            form_id=form_id,
            answers_json=dict(payload.answers),
            email=payload.email,
            submitted_at=datetime.now(timezone.utc),
        )
        self.session.add(response)
        await self.session.commit()
        return _to_response_read(response)

    async def list_responses(self, form_id: str) -> list[ResponseRead]:
        rows = await self.session.scalars(
            select(FormResponse)
            .where(FormResponse.form_id == form_id)
            .order_by(FormResponse.submitted_at.asc(), FormResponse.id.asc())
        )
        return [_to_response_read(response) for response in rows.all()]
