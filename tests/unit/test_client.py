from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

API_DIR = Path(__file__).resolve().parents[2]
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

import main
from formforge.builder import FormDraft
from formforge.client import ApiError, FormForgeClient, UploadError
from formforge.deps import get_form_storage, get_object_storage
from formforge.fill import FillSession
from formforge.storage import LocalObjectStorage, MemoryFormStorage


@pytest.fixture()
def api(tmp_path: Path) -> FormForgeClient:
    store = MemoryFormStorage()
    objects = LocalObjectStorage(tmp_path / "uploads")
    main.app.dependency_overrides[get_form_storage] = lambda: store
    main.app.dependency_overrides[get_object_storage] = lambda: objects
    return FormForgeClient("http://testserver", session=TestClient(main.app))


@pytest.fixture(autouse=True)
def clear_overrides() -> None:
    yield
    main.app.dependency_overrides.clear()


def test_build_publish_fill_and_read_back(api: FormForgeClient) -> None:
    draft = FormDraft(title="Quiz")
    cloze = draft.add_question("cloze")
    cloze.set_text("red fish blue fish")
    cloze.select(0, 3)
    cloze.create_blank()
    draft.publish(api)

    shared = api.get_shared_form(draft.share_url)
    session = FillSession(shared)
    session.sheet(cloze.question_id).type_word(cloze.question.blanks[0].id, "red")
    response = session.submit(api, email="user@example.com")

    responses = api.list_responses(draft.form_id)
    assert [r.id for r in responses] == [response.id]
    assert responses[0].answers == {cloze.question_id: {cloze.question.blanks[0].id: "red"}}
    assert responses[0].email == "user@example.com"


def test_errors_carry_status_and_detail(api: FormForgeClient) -> None:
    with pytest.raises(ApiError) as excinfo:
        api.get_form("missing")

    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == "Form not found"


def test_validation_errors_expose_field_list(api: FormForgeClient) -> None:
    with pytest.raises(ApiError) as excinfo:
        api.create_form({"title": ""})

    assert excinfo.value.status_code == 400
    assert excinfo.value.detail[0]["loc"] == ["body", "title"]


def test_delete_and_list_forms(api: FormForgeClient) -> None:
    form = api.create_form({"title": "Quiz"})

    assert [f.id for f in api.list_forms()] == [form.id]
    assert api.delete_form(form.id) is None
    assert api.list_forms() == []


def test_upload_image_returns_public_url(api: FormForgeClient, tmp_path: Path) -> None:
    image = tmp_path / "header.png"
    image.write_bytes(b"\x89PNG\r\n\x1a\n")

    url = api.upload_image(image)

    assert url.startswith("/public-objects/")
    assert url.endswith(".png")


def test_upload_image_checks_type_and_size_before_sending(api: FormForgeClient, tmp_path: Path) -> None:
    text_file = tmp_path / "notes.txt"
    text_file.write_text("hello")
    image = tmp_path / "big.png"
    image.write_bytes(b"0" * 64)

    with pytest.raises(UploadError, match="Not an image"):
        api.upload_image(text_file)
    with pytest.raises(UploadError, match="too large"):
        api.upload_image(image, max_size=10)
