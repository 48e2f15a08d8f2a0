from __future__ import annotations

from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Union

from formforge.builder.base import EditorError, make_id, move_by_id
from formforge.builder.categorize import CategorizeEditor
from formforge.builder.cloze import ClozeEditor
from formforge.builder.comprehension import ComprehensionEditor
from formforge.config import DEFAULT_FORM_TITLE
from formforge.observability import get_logger, log_warning
from formforge.schemas import (
    CategorizeQuestion,
    ClozeQuestion,
    ComprehensionQuestion,
    FormCreate,
    FormRead,
    QuestionType,
)

if TYPE_CHECKING:
    from formforge.client import FormForgeClient

AnyQuestion = Union[CategorizeQuestion, ClozeQuestion, ComprehensionQuestion]
AnyEditor = Union[CategorizeEditor, ClozeEditor, ComprehensionEditor]

logger = get_logger("formforge.builder")


class FormDraft:
    """In-memory form being edited in the builder.

    The draft is the host of the question editors: editors report partial
    updates and deletions back here, and the draft persists itself through
    a :class:`~formforge.client.FormForgeClient`.
    """

    def __init__(
        self,
        title: str = DEFAULT_FORM_TITLE,
        description: str = "",
        header_image: str | None = None,
        questions: list[AnyQuestion] | None = None,
        is_published: bool = False,
        form_id: str | None = None,
        share_url: str | None = None,
    ) -> None:
        self.title = title
        self.description = description
        self.header_image = header_image
        self.questions: list[AnyQuestion] = list(questions or [])
        self.is_published = is_published
        self.form_id = form_id
        self.share_url = share_url
        self.upload_error: str | None = None

    @classmethod
    def from_form(cls, form: FormRead) -> "FormDraft":
        return cls(
            title=form.title,
            description=form.description or "",
            header_image=form.header_image,
            questions=[question.model_copy(deep=True) for question in form.questions],
            is_published=form.is_published,
            form_id=form.id,
            share_url=form.share_url,
        )

    def add_question(self, question_type: QuestionType) -> AnyEditor:
        question_id = make_id("question")
        if question_type == "categorize":
            question: AnyQuestion = CategorizeQuestion(id=question_id)
        elif question_type == "cloze":
            question = ClozeQuestion(id=question_id)
        elif question_type == "comprehension":
            question = ComprehensionQuestion(id=question_id)
        else:
            raise EditorError(f"Unsupported question type: {question_type}")
        self.questions.append(question)
        return self._bind(question)

    def editor(self, question_id: str) -> AnyEditor:
        return self._bind(self._require_question(question_id))

    def update_question(self, question_id: str, changes: dict[str, Any]) -> AnyQuestion:
        current = self._require_question(question_id)
        updated = current.model_copy(update=changes)
        self.questions = [updated if q.id == question_id else q for q in self.questions]
        return updated

    def delete_question(self, question_id: str) -> None:
        self.questions = [q for q in self.questions if q.id != question_id]

    def move_question(self, active_id: str, over_id: str) -> None:
        self.questions = move_by_id(self.questions, active_id, over_id)

    def to_payload(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "headerImage": self.header_image or None,
            "questions": [q.model_dump(mode="json", by_alias=True) for q in self.questions],
            "isPublished": self.is_published,
        }

    def validate(self) -> FormCreate:
        """Run the server's schema locally before any network call."""
        return FormCreate.model_validate(self.to_payload())

    def save(self, client: "FormForgeClient") -> FormRead:
        self.validate()
        payload = self.to_payload()
        if self.form_id:
            form = client.update_form(self.form_id, payload)
        else:
            form = client.create_form(payload)
        self.form_id = form.id
        self.share_url = form.share_url
        self.is_published = form.is_published
        return form

    def publish(self, client: "FormForgeClient") -> FormRead:
        previous = self.is_published
        self.is_published = True
        try:
            return self.save(client)
        except Exception:
            self.is_published = previous
            raise

    def share_path(self) -> str | None:
        if not self.share_url:
            return None
        return f"/fill/{self.share_url}"

    def apply_upload(self, future: "Future[str]", question_id: str | None = None) -> None:
        """Merge an upload result into the draft once ``future`` resolves.

        Only the header image (or the image of ``question_id``) changes; a
        failed upload is recorded in ``upload_error`` and nothing else moves.

        The merge runs in ``Future.add_done_callback``, so it executes on the
        thread that resolves ``future`` (the executor worker), or immediately
        on the calling thread if ``future`` is already done. The draft is not
        locked: a host that edits the draft from another thread must hand the
        result over itself, e.g. by passing a future it resolves on its own
        thread.
        """

        def _on_done(done: "Future[str]") -> None:
            if done.cancelled():
                self.upload_error = "Upload cancelled"
                return
            exc = done.exception()
            if exc is not None:
                self.upload_error = str(exc) or exc.__class__.__name__
                log_warning(logger, "upload.failed", question_id=question_id, error=self.upload_error)
                return
            url = done.result()
            self.upload_error = None
            if question_id is None:
                self.header_image = url
            elif any(q.id == question_id for q in self.questions):
                self.update_question(question_id, {"image": url})
            else:
                self.upload_error = f"Question {question_id} no longer exists"

        future.add_done_callback(_on_done)

    def _require_question(self, question_id: str) -> AnyQuestion:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise EditorError(f"Unknown question: {question_id}")

    def _bind(self, question: AnyQuestion) -> AnyEditor:
        if isinstance(question, CategorizeQuestion):
            return CategorizeEditor(question, self.update_question, self.delete_question)
        if isinstance(question, ClozeQuestion):
            return ClozeEditor(question, self.update_question, self.delete_question)
        if isinstance(question, ComprehensionQuestion):
            return ComprehensionEditor(question, self.update_question, self.delete_question)
        raise TypeError(f"Unsupported question: {type(question).__name__}")
