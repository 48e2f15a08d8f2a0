from __future__ import annotations

import sys
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from pydantic import ValidationError

API_DIR = Path(__file__).resolve().parents[2]
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

from formforge.builder import EditorError, FormDraft
from formforge.client import ApiError
from formforge.config import DEFAULT_FORM_TITLE


class _FakeClient:
    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.fail = fail

    def _form(self, payload: dict[str, Any], form_id: str) -> SimpleNamespace:
        if self.fail:
            raise ApiError(500, "Storage operation failed")
        return SimpleNamespace(
            id=form_id,
            is_published=payload["isPublished"],
            share_url="share123" if payload["isPublished"] else None,
        )

    def create_form(self, payload: dict[str, Any]) -> SimpleNamespace:
        self.calls.append(("create", payload))
        return self._form(payload, "form-1")

    def update_form(self, form_id: str, payload: dict[str, Any]) -> SimpleNamespace:
        self.calls.append(("update", form_id))
        return self._form(payload, form_id)


def test_new_draft_defaults() -> None:
    draft = FormDraft()

    assert draft.title == DEFAULT_FORM_TITLE
    assert draft.questions == []
    assert draft.share_path() is None


def test_add_question_rejects_unknown_type() -> None:
    with pytest.raises(EditorError, match="Unsupported question type"):
        FormDraft().add_question("essay")  # type: ignore[arg-type]


def test_move_question_reorders() -> None:
    draft = FormDraft()
    first = draft.add_question("categorize")
    second = draft.add_question("cloze")
    third = draft.add_question("comprehension")

    draft.move_question(third.question_id, first.question_id)

    assert [q.id for q in draft.questions] == [third.question_id, first.question_id, second.question_id]
    assert [q.type for q in draft.questions] == ["comprehension", "categorize", "cloze"]


def test_payload_is_camel_case_and_validates() -> None:
    draft = FormDraft(title="Quiz", header_image="")
    draft.add_question("comprehension").add_mcq("Q1")

    payload = draft.to_payload()
    validated = draft.validate()

    assert payload["headerImage"] is None
    assert payload["isPublished"] is False
    assert payload["questions"][0]["questions"][0]["options"][0]["isCorrect"] is True
    assert validated.title == "Quiz"


def test_validate_rejects_blank_title() -> None:
    with pytest.raises(ValidationError):
        FormDraft(title=" ").validate()


def test_save_creates_then_updates() -> None:
    client = _FakeClient()
    draft = FormDraft(title="Quiz")

    draft.save(client)
    draft.save(client)

    assert [call[0] for call in client.calls] == ["create", "update"]
    assert draft.form_id == "form-1"


def test_publish_sets_share_path() -> None:
    draft = FormDraft(title="Quiz")

    draft.publish(_FakeClient())

    assert draft.is_published is True
    assert draft.share_path() == "/fill/share123"


def test_failed_publish_restores_flag() -> None:
    draft = FormDraft(title="Quiz")

    with pytest.raises(ApiError):
        draft.publish(_FakeClient(fail=True))

    assert draft.is_published is False
    assert draft.form_id is None


def test_from_form_copies_questions() -> None:
    form = SimpleNamespace(
        id="f1",
        title="Quiz",
        description=None,
        header_image=None,
        questions=[FormDraft().add_question("cloze").question],
        is_published=True,
        share_url="abc",
    )

    draft = FormDraft.from_form(form)

    assert draft.description == ""
    assert draft.share_path() == "/fill/abc"
    assert draft.questions[0] is not form.questions[0]
    assert draft.questions[0] == form.questions[0]


def test_apply_upload_sets_header_image() -> None:
    draft = FormDraft()
    future: Future[str] = Future()

    draft.apply_upload(future)
    future.set_result("/public-objects/header.png")

    assert draft.header_image == "/public-objects/header.png"
    assert draft.upload_error is None


def test_apply_upload_targets_question_image() -> None:
    draft = FormDraft()
    editor = draft.add_question("categorize")
    future: Future[str] = Future()

    draft.apply_upload(future, question_id=editor.question_id)
    future.set_result("/public-objects/q.png")

    assert draft.questions[0].image == "/public-objects/q.png"
    assert draft.header_image is None


def test_apply_upload_failure_leaves_draft_untouched() -> None:
    draft = FormDraft(header_image="/public-objects/old.png")
    future: Future[str] = Future()

    draft.apply_upload(future)
    future.set_exception(ApiError(413, "File too large"))

    assert draft.header_image == "/public-objects/old.png"
    assert "File too large" in draft.upload_error


def test_apply_upload_for_deleted_question_reports_error() -> None:
    draft = FormDraft()
    editor = draft.add_question("cloze")
    future: Future[str] = Future()

    draft.apply_upload(future, question_id=editor.question_id)
    editor.delete()
    future.set_result("/public-objects/q.png")

    assert draft.questions == []
    assert "no longer exists" in draft.upload_error


def test_apply_upload_resolved_by_executor_worker() -> None:
    draft = FormDraft()
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(lambda: "/public-objects/worker.png")
        draft.apply_upload(future)

    assert draft.header_image == "/public-objects/worker.png"


def test_apply_upload_with_finished_future_merges_immediately() -> None:
    draft = FormDraft()
    future: Future[str] = Future()
    future.set_result("/public-objects/done.png")

    draft.apply_upload(future)

    assert draft.header_image == "/public-objects/done.png"
