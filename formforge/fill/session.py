from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any, Union

from formforge.fill.categorize import CategorizeBoard
from formforge.fill.cloze import ClozeSheet
from formforge.fill.comprehension import ComprehensionSheet
from formforge.schemas import (
    CategorizeQuestion,
    ClozeQuestion,
    ComprehensionQuestion,
    FormRead,
    ResponseRead,
)

if TYPE_CHECKING:
    from formforge.client import FormForgeClient

AnySheet = Union[CategorizeBoard, ClozeSheet, ComprehensionSheet]


class FormNotPublishedError(ValueError):
    pass


class FillSession:
    """One respondent filling a published form."""

    def __init__(self, form: FormRead, rng: random.Random | None = None) -> None:
        if not form.is_published:
            raise FormNotPublishedError(f"Form {form.id} is not published")
        self.form = form
        self.sheets: dict[str, AnySheet] = {}
        for question in form.questions:
            if isinstance(question, CategorizeQuestion):
                self.sheets[question.id] = CategorizeBoard(question)
            elif isinstance(question, ClozeQuestion):
                self.sheets[question.id] = ClozeSheet(question, rng=rng)
            elif isinstance(question, ComprehensionQuestion):
                self.sheets[question.id] = ComprehensionSheet(question)
            else:
                raise TypeError(f"Unsupported question: {type(question).__name__}")

    @classmethod
    def open(cls, client: "FormForgeClient", share_url: str, rng: random.Random | None = None) -> "FillSession":
        return cls(client.get_shared_form(share_url), rng=rng)

    def sheet(self, question_id: str) -> AnySheet:
        try:
            return self.sheets[question_id]
        except KeyError:
            raise ValueError(f"Unknown question: {question_id}") from None

    def answers(self) -> dict[str, Any]:
        return {question_id: sheet.answer() for question_id, sheet in self.sheets.items()}

    def submit(self, client: "FormForgeClient", email: str | None = None) -> ResponseRead:
        return client.submit_response(self.form.id, self.answers(), email=email)
