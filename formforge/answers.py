"""Validation of submitted answer payloads against the questions of a form.

Violations are reported in the same ``{"loc", "msg", "type"}`` shape pydantic
uses so the API can return them next to schema errors.
"""

from __future__ import annotations

from typing import Any, Sequence

from formforge.schemas import (
    UNCATEGORIZED,
    CategorizeQuestion,
    ClozeQuestion,
    ComprehensionQuestion,
)


class AnswerValidationError(ValueError):
    def __init__(self, errors: list[dict[str, Any]]) -> None:
        super().__init__(f"{len(errors)} invalid answer(s)")
        self.errors = errors


def _violation(loc: Sequence[str | int], msg: str, kind: str) -> dict[str, Any]:
    return {"loc": ["body", "answers", *loc], "msg": msg, "type": kind}


def _check_categorize(question: CategorizeQuestion, payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, dict):
        return [_violation([question.id], "Expected a mapping of bucket id to item ids", "type_error")]

    errors: list[dict[str, Any]] = []
    buckets = {category.id for category in question.categories} | {UNCATEGORIZED}
    item_ids = {item.id for item in question.items}
    placed: set[str] = set()
    for bucket_id, members in payload.items():
        if bucket_id not in buckets:
            errors.append(_violation([question.id, bucket_id], "Unknown category", "unknown_category"))
            continue
        if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
            errors.append(_violation([question.id, bucket_id], "Expected a list of item ids", "type_error"))
            continue
        for item_id in members:
            if item_id not in item_ids:
                errors.append(_violation([question.id, bucket_id], f"Unknown item {item_id}", "unknown_item"))
            elif item_id in placed:
                errors.append(_violation([question.id, bucket_id], f"Item {item_id} placed twice", "duplicate_item"))
            placed.add(item_id)
    return errors


def _check_cloze(question: ClozeQuestion, payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, dict):
        return [_violation([question.id], "Expected a mapping of blank id to word", "type_error")]

    errors: list[dict[str, Any]] = []
    blank_ids = {blank.id for blank in question.blanks}
    for blank_id, word in payload.items():
        if blank_id not in blank_ids:
            errors.append(_violation([question.id, blank_id], "Unknown blank", "unknown_blank"))
        elif not isinstance(word, str):
            errors.append(_violation([question.id, blank_id], "Expected a word", "type_error"))
    return errors


def _check_comprehension(question: ComprehensionQuestion, payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, dict):
        return [_violation([question.id], "Expected a mapping of question id to option id", "type_error")]

    errors: list[dict[str, Any]] = []
    options_by_mcq = {mcq.id: {option.id for option in mcq.options} for mcq in question.questions}
    for mcq_id, option_id in payload.items():
        if mcq_id not in options_by_mcq:
            errors.append(_violation([question.id, mcq_id], "Unknown question", "unknown_question"))
        elif not isinstance(option_id, str):
            errors.append(_violation([question.id, mcq_id], "Expected an option id", "type_error"))
        elif option_id not in options_by_mcq[mcq_id]:
            errors.append(_violation([question.id, mcq_id], f"Unknown option {option_id}", "unknown_option"))
    return errors


def validate_answers(
    questions: Sequence[CategorizeQuestion | ClozeQuestion | ComprehensionQuestion],
    answers: dict[str, Any],
) -> list[dict[str, Any]]:
    by_id = {question.id: question for question in questions}
    errors: list[dict[str, Any]] = []
    for question_id, payload in answers.items():
        question = by_id.get(question_id)
        if question is None:
            errors.append(_violation([question_id], "Unknown question", "unknown_question"))
        elif isinstance(question, CategorizeQuestion):
            errors.extend(_check_categorize(question, payload))
        elif isinstance(question, ClozeQuestion):
            errors.extend(_check_cloze(question, payload))
        elif isinstance(question, ComprehensionQuestion):
            errors.extend(_check_comprehension(question, payload))
        else:
            raise TypeError(f"Unsupported question type: {type(question).__name__}")
    return errors


def ensure_valid_answers(
    questions: Sequence[CategorizeQuestion | ClozeQuestion | ComprehensionQuestion],
    answers: dict[str, Any],
) -> None:
    errors = validate_answers(questions, answers)
    if errors:
        raise AnswerValidationError(errors)
