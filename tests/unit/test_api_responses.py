from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

API_DIR = Path(__file__).resolve().parents[2]
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

import main
from formforge.deps import get_form_storage
from formforge.storage import MemoryFormStorage


def _questions() -> list[dict[str, Any]]:
    return [
        {
            "type": "categorize",
            "id": "q_cat",
            "question": "Sort the animals",
            "categories": [{"id": "c_mammal", "name": "Mammal"}, {"id": "c_bird", "name": "Bird"}],
            "items": [
                {"id": "i_dog", "text": "Dog", "correctCategory": "c_mammal"},
                {"id": "i_owl", "text": "Owl", "correctCategory": "c_bird"},
            ],
        },
        {
            "type": "cloze",
            "id": "q_cloze",
            "text": "The sky is blue",
            "blanks": [{"id": "b_blue", "word": "blue", "position": 11}],
        },
        {
            "type": "comprehension",
            "id": "q_read",
            "passage": "Water boils at 100 degrees.",
            "questions": [
                {
                    "id": "m1",
                    "question": "When does water boil?",
                    "options": [
                        {"id": "o1", "text": "100 degrees", "isCorrect": True},
                        {"id": "o2", "text": "50 degrees", "isCorrect": False},
                    ],
                }
            ],
        },
    ]


def _valid_answers() -> dict[str, Any]:
    return {
        "q_cat": {"uncategorized": [], "c_mammal": ["i_dog"], "c_bird": ["i_owl"]},
        "q_cloze": {"b_blue": "blue"},
        "q_read": {"m1": "o1"},
    }


@pytest.fixture()
def client() -> TestClient:
    store = MemoryFormStorage()
    main.app.dependency_overrides[get_form_storage] = lambda: store
    return TestClient(main.app)


@pytest.fixture(autouse=True)
def clear_overrides() -> None:
    yield
    main.app.dependency_overrides.clear()


def _create_form(client: TestClient, *, published: bool = True) -> dict[str, Any]:
    response = client.post(
        "/api/forms",
        json={"title": "Quiz", "questions": _questions(), "isPublished": published},
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_submit_response_stores_answers_and_email(client: TestClient) -> None:
    form = _create_form(client)

    response = client.post(
        f"/api/forms/{form['id']}/responses",
        json={"answers": _valid_answers(), "email": " user@example.com "},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["formId"] == form["id"]
    assert body["answers"] == _valid_answers()
    assert body["email"] == "user@example.com"
    assert body["submittedAt"]


def test_submit_response_accepts_user_email_alias(client: TestClient) -> None:
    form = _create_form(client)

    response = client.post(
        f"/api/forms/{form['id']}/responses",
        json={"answers": {}, "userEmail": "alias@example.com"},
    )

    assert response.status_code == 201
    assert response.json()["email"] == "alias@example.com"


def test_submit_response_without_email_is_anonymous(client: TestClient) -> None:
    form = _create_form(client)

    response = client.post(f"/api/forms/{form['id']}/responses", json={"answers": {"q_read": {"m1": "o2"}}})

    assert response.status_code == 201
    assert response.json()["email"] is None


def test_submit_response_rejects_unpublished_form(client: TestClient) -> None:
    form = _create_form(client, published=False)

    response = client.post(f"/api/forms/{form['id']}/responses", json={"answers": {}})

    assert response.status_code == 404
    assert "not published" in response.json()["detail"]


def test_submit_response_rejects_unknown_form(client: TestClient) -> None:
    response = client.post("/api/forms/missing/responses", json={"answers": {}})

    assert response.status_code == 404


def test_submit_response_requires_answers_field(client: TestClient) -> None:
    form = _create_form(client)

    response = client.post(f"/api/forms/{form['id']}/responses", json={"email": "user@example.com"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Validation failed"


def test_submit_response_rejects_invalid_email(client: TestClient) -> None:
    form = _create_form(client)

    response = client.post(f"/api/forms/{form['id']}/responses", json={"answers": {}, "email": "nobody"})

    assert response.status_code == 400


def test_submit_response_reports_answer_violations(client: TestClient) -> None:
    form = _create_form(client)
    answers = {
        "q_cat": {"c_mammal": ["i_cat"]},
        "q_cloze": {"b_missing": "blue"},
        "q_read": {"m1": "o9"},
    }

    response = client.post(f"/api/forms/{form['id']}/responses", json={"answers": answers})

    assert response.status_code == 400
    errors = response.json()["errors"]
    assert {error["type"] for error in errors} == {"unknown_item", "unknown_blank", "unknown_option"}
    assert all(error["loc"][:2] == ["body", "answers"] for error in errors)


def test_list_responses_returns_submissions_for_form(client: TestClient) -> None:
    form = _create_form(client)
    other = _create_form(client)
    client.post(f"/api/forms/{form['id']}/responses", json={"answers": {"q_cloze": {"b_blue": "red"}}})
    client.post(f"/api/forms/{form['id']}/responses", json={"answers": {}})
    client.post(f"/api/forms/{other['id']}/responses", json={"answers": {}})

    response = client.get(f"/api/forms/{form['id']}/responses")

    assert response.status_code == 200
    assert len(response.json()) == 2
    assert all(item["formId"] == form["id"] for item in response.json())


def test_list_responses_returns_404_for_unknown_form(client: TestClient) -> None:
    response = client.get("/api/forms/missing/responses")

    assert response.status_code == 404


def test_deleting_form_drops_its_responses(client: TestClient) -> None:
    form = _create_form(client)
    client.post(f"/api/forms/{form['id']}/responses", json={"answers": {}})

    client.delete(f"/api/forms/{form['id']}")

    assert client.get(f"/api/forms/{form['id']}/responses").status_code == 404


def test_submit_response_rejects_list_as_option_id(client: TestClient) -> None:
    form = _create_form(client)

    response = client.post(f"/api/forms/{form['id']}/responses", json={"answers": {"q_read": {"m1": ["o1"]}}})

    assert response.status_code == 400
    assert response.json()["errors"][0]["type"] == "type_error"
    assert client.get(f"/api/forms/{form['id']}/responses").json() == []
