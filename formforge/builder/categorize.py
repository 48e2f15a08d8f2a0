from __future__ import annotations

from typing import Any

from formforge.builder.base import (
    DeleteCallback,
    EditorError,
    QuestionEditor,
    UpdateCallback,
    make_id,
    move_by_id,
)
from formforge.schemas import CategorizeItem, CategorizeQuestion, Category


class CategorizeEditor(QuestionEditor[CategorizeQuestion]):
    def __init__(self, question: CategorizeQuestion, on_update: UpdateCallback, on_delete: DeleteCallback) -> None:
        super().__init__(question, on_update, on_delete)
        self.new_item_text = ""
        self.new_category_name = ""

    def set_question_text(self, text: str) -> CategorizeQuestion:
        return self.update(question=text)

    def add_item(self, text: str | None = None) -> CategorizeItem | None:
        text = (self.new_item_text if text is None else text).strip()
        if not text:
            return None
        categories = self.question.categories
        item = CategorizeItem(
            id=make_id("item"),
            text=text,
            correct_category=categories[0].id if categories else "",
        )
        self.update(items=[*self.question.items, item])
        self.new_item_text = ""
        return item

    def update_item(self, item_id: str, **changes: Any) -> CategorizeItem:
        self._require_item(item_id)
        category = changes.get("correct_category")
        if category and category not in {c.id for c in self.question.categories}:
            raise EditorError(f"Unknown category: {category}")
        items = [item.model_copy(update=changes) if item.id == item_id else item for item in self.question.items]
        self.update(items=items)
        return self._require_item(item_id)

    def delete_item(self, item_id: str) -> None:
        self.update(items=[item for item in self.question.items if item.id != item_id])

    def add_category(self, name: str | None = None) -> Category | None:
        name = (self.new_category_name if name is None else name).strip()
        if not name:
            return None
        category = Category(id=make_id("category"), name=name)
        self.update(categories=[*self.question.categories, category])
        self.new_category_name = ""
        return category

    def rename_category(self, category_id: str, name: str) -> None:
        if category_id not in {c.id for c in self.question.categories}:
            raise EditorError(f"Unknown category: {category_id}")
        categories = [c.model_copy(update={"name": name}) if c.id == category_id else c for c in self.question.categories]
        self.update(categories=categories)

    def delete_category(self, category_id: str) -> None:
        # Items pointing at the removed category lose their answer, nothing else changes.
        self.update(
            categories=[c for c in self.question.categories if c.id != category_id],
            items=[
                item.model_copy(update={"correct_category": ""}) if item.correct_category == category_id else item
                for item in self.question.items
            ],
        )

    def move_item(self, active_id: str, over_id: str) -> None:
        items = move_by_id(self.question.items, active_id, over_id)
        if items != self.question.items:
            self.update(items=items)

    def move_category(self, active_id: str, over_id: str) -> None:
        categories = move_by_id(self.question.categories, active_id, over_id)
        if categories != self.question.categories:
            self.update(categories=categories)

    def _require_item(self, item_id: str) -> CategorizeItem:
        for item in self.question.items:
            if item.id == item_id:
                return item
        raise EditorError(f"Unknown item: {item_id}")
