from __future__ import annotations

from formforge.schemas import UNCATEGORIZED, CategorizeQuestion


class CategorizeBoard:
    """Drag-and-drop buckets for one categorize question."""

    def __init__(self, question: CategorizeQuestion) -> None:
        self.question = question
        self.buckets = self._initial_buckets()

    def _initial_buckets(self) -> dict[str, list[str]]:
        buckets = {UNCATEGORIZED: [item.id for item in self.question.items]}
        for category in self.question.categories:
            buckets[category.id] = []
        return buckets

    def bucket_of(self, item_id: str) -> str | None:
        for bucket_id, members in self.buckets.items():
            if item_id in members:
                return bucket_id
        return None

    def move(self, item_id: str, target: str) -> str:
        """Move ``item_id`` into ``target`` and return the bucket it landed in.

        ``target`` is a bucket id, or the id of an item already sitting in the
        bucket the drop should go to.
        """
        if self.bucket_of(item_id) is None:
            raise ValueError(f"Unknown item: {item_id}")
        bucket_id = target if target in self.buckets else self.bucket_of(target)
        if bucket_id is None:
            raise ValueError(f"Unknown drop target: {target}")
        if target == item_id:
            return bucket_id

        for members in self.buckets.values():
            if item_id in members:
                members.remove(item_id)
        self.buckets[bucket_id].append(item_id)
        return bucket_id

    def reset(self) -> None:
        self.buckets = self._initial_buckets()

    def answer(self) -> dict[str, list[str]]:
        return {bucket_id: list(members) for bucket_id, members in self.buckets.items()}
