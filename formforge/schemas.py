from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

QuestionType = Literal["categorize", "cloze", "comprehension"]
UNCATEGORIZED = "uncategorized"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _duplicates(ids: list[str]) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for value in ids:
        if value in seen and value not in dupes:
            dupes.append(value)
        seen.add(value)
    return dupes


class CategorizeItem(CamelModel):
    id: str = Field(min_length=1)
    text: str
    correct_category: str = ""


class Category(CamelModel):
    id: str = Field(min_length=1)
    name: str


class CategorizeQuestion(CamelModel):
    type: Literal["categorize"] = "categorize"
    id: str = Field(min_length=1)
    question: str = ""
    image: str | None = None
    items: list[CategorizeItem] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_references(self) -> "CategorizeQuestion":
        for label, ids in (
            ("item", [item.id for item in self.items]),
            ("category", [category.id for category in self.categories]),
        ):
            dupes = _duplicates(ids)
            if dupes:
                raise ValueError(f"Duplicate {label} ids: {', '.join(dupes)}")

        category_ids = {category.id for category in self.categories}
        for item in self.items:
            if item.correct_category and item.correct_category not in category_ids:
                raise ValueError(f"Item {item.id} references unknown category {item.correct_category}")
        return self


class Blank(CamelModel):
    id: str = Field(min_length=1)
    word: str = Field(min_length=1)
    position: int = Field(ge=0)

    @property
    def end(self) -> int:
        return self.position + len(self.word)


class ClozeQuestion(CamelModel):
    type: Literal["cloze"] = "cloze"
    id: str = Field(min_length=1)
    text: str = ""
    image: str | None = None
    blanks: list[Blank] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_blanks(self) -> "ClozeQuestion":
        dupes = _duplicates([blank.id for blank in self.blanks])
        if dupes:
            raise ValueError(f"Duplicate blank ids: {', '.join(dupes)}")

        for blank in self.blanks:
            if self.text[blank.position : blank.end] != blank.word:
                raise ValueError(f"Blank {blank.id} does not match the text at position {blank.position}")

        ordered = sorted(self.blanks, key=lambda b: b.position)
        for previous, current in zip(ordered, ordered[1:]):
            if current.position < previous.end:
                raise ValueError(f"Blanks {previous.id} and {current.id} overlap")
        return self

    def segments(self) -> list[tuple[str, Blank | None]]:
        """Split the text into plain runs and blanks, in reading order."""
        parts: list[tuple[str, Blank | None]] = []
        cursor = 0
        for blank in sorted(self.blanks, key=lambda b: b.position):
            if blank.position > cursor:
                parts.append((self.text[cursor : blank.position], None))
            parts.append((blank.word, blank))
            cursor = blank.end
        if cursor < len(self.text):
            parts.append((self.text[cursor:], None))
        return parts


class McqOption(CamelModel):
    id: str = Field(min_length=1)
    text: str = ""
    is_correct: bool = False


class McqQuestion(CamelModel):
    id: str = Field(min_length=1)
    question: str = ""
    options: list[McqOption]

    @model_validator(mode="after")
    def check_options(self) -> "McqQuestion":
        if len(self.options) < 2:
            raise ValueError(f"Question {self.id} needs at least 2 options")
        dupes = _duplicates([option.id for option in self.options])
        if dupes:
            raise ValueError(f"Duplicate option ids: {', '.join(dupes)}")
        correct = sum(1 for option in self.options if option.is_correct)
        if correct != 1:
            raise ValueError(f"Question {self.id} must have exactly one correct option, found {correct}")
        return self

    @property
    def correct_option(self) -> McqOption:
        return next(option for option in self.options if option.is_correct)


class ComprehensionQuestion(CamelModel):
    type: Literal["comprehension"] = "comprehension"
    id: str = Field(min_length=1)
    passage: str = ""
    image: str | None = None
    questions: list[McqQuestion] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_questions(self) -> "ComprehensionQuestion":
        dupes = _duplicates([mcq.id for mcq in self.questions])
        if dupes:
            raise ValueError(f"Duplicate question ids: {', '.join(dupes)}")
        return self


Question = Annotated[
    Union[CategorizeQuestion, ClozeQuestion, ComprehensionQuestion],
    Field(discriminator="type"),
]


def _check_question_ids(questions: list[Any] | None) -> None:
    if not questions:
        return
    dupes = _duplicates([question.id for question in questions])
    if dupes:
        raise ValueError(f"Duplicate question ids: {', '.join(dupes)}")


class FormCreate(CamelModel):
    title: str
    description: str | None = None
    header_image: str | None = None
    questions: list[Question] = Field(default_factory=list)
    is_published: bool = False

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Title is required")
        return value

    @model_validator(mode="after")
    def check_question_ids(self) -> "FormCreate":
        _check_question_ids(self.questions)
        return self


class FormUpdate(CamelModel):
    title: str | None = None
    description: str | None = None
    header_image: str | None = None
    questions: list[Question] | None = None
    is_published: bool | None = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("Title is required")
        return value

    @model_validator(mode="after")
    def check_question_ids(self) -> "FormUpdate":
        _check_question_ids(self.questions)
        return self

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually sent; explicit nulls only count for nullable fields."""
        data = {name: getattr(self, name) for name in self.model_fields_set}
        for required in ("title", "questions", "is_published"):
            if data.get(required, ...) is None:
                data.pop(required)
        return data


class FormRead(CamelModel):
    id: str
    title: str
    description: str | None = None
    header_image: str | None = None
    questions: list[Question] = Field(default_factory=list)
    is_published: bool
    share_url: str | None = None
    created_at: datetime
    updated_at: datetime

    def question(self, question_id: str) -> CategorizeQuestion | ClozeQuestion | ComprehensionQuestion | None:
        return next((q for q in self.questions if q.id == question_id), None)


class ResponseCreate(CamelModel):
    answers: dict[str, Any]
    email: str | None = Field(default=None, validation_alias=AliasChoices("email", "userEmail"))

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("Invalid email address")
        return value


class ResponseRead(CamelModel):
    id: str
    form_id: str
    answers: dict[str, Any]
    email: str | None = None
    submitted_at: datetime


class UploadResponse(CamelModel):
    success: bool = True
    url: str
    filename: str
    original_name: str | None = None


class UploadUrlResponse(BaseModel):
    uploadURL: str


class ValidationErrorItem(BaseModel):
    loc: list[str | int]
    msg: str
    type: str


class ValidationErrorResponse(BaseModel):
    detail: str = "Validation failed"
    errors: list[ValidationErrorItem]
