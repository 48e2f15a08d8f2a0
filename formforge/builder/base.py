from __future__ import annotations

from typing import Any, Callable, Generic, Sequence, TypeVar
from uuid import uuid4

from pydantic import BaseModel

T = TypeVar("T")
Q = TypeVar("Q", bound=BaseModel)

UpdateCallback = Callable[[str, dict[str, Any]], None]
DeleteCallback = Callable[[str], None]


class EditorError(ValueError):
    """An editor operation that would break a question invariant."""


def make_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def move_by_id(entries: Sequence[T], active_id: str, over_id: str, key: Callable[[T], str] = lambda e: e.id) -> list[T]:
    """Move the entry with ``active_id`` to the index of ``over_id``.

    Everything else keeps its relative order. Unknown ids or a drop onto
    itself leave the sequence unchanged.
    """
    result = list(entries)
    if active_id == over_id:
        return result
    ids = [key(entry) for entry in result]
    if active_id not in ids or over_id not in ids:
        return result
    old_index = ids.index(active_id)
    new_index = ids.index(over_id)
    result.insert(new_index, result.pop(old_index))
    return result


class QuestionEditor(Generic[Q]):
    """Holds one question as a value and reports changes to its host."""

    def __init__(self, question: Q, on_update: UpdateCallback, on_delete: DeleteCallback) -> None:
        self.question = question
        self._on_update = on_update
        self._on_delete = on_delete

    @property
    def question_id(self) -> str:
        return self.question.id  # type: ignore[attr-defined]

    def update(self, **changes: Any) -> Q:
        self.question = self.question.model_copy(update=changes)
        self._on_update(self.question_id, changes)
        return self.question

    def delete(self) -> None:
        self._on_delete(self.question_id)

    def set_image(self, url: str | None) -> Q:
        return self.update(image=url or None)
