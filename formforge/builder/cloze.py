from __future__ import annotations

from dataclasses import dataclass

from formforge.builder.base import (
    DeleteCallback,
    EditorError,
    QuestionEditor,
    UpdateCallback,
    make_id,
    move_by_id,
)
from formforge.schemas import Blank, ClozeQuestion


@dataclass(frozen=True)
class PendingSelection:
    start: int
    end: int
    text: str


def _occurrences(text: str, word: str) -> list[int]:
    positions: list[int] = []
    index = text.find(word)
    while index != -1:
        positions.append(index)
        index = text.find(word, index + 1)
    return positions


def _overlaps(start: int, end: int, taken: list[tuple[int, int]]) -> bool:
    return any(start < taken_end and taken_start < end for taken_start, taken_end in taken)


def relocate_blanks(text: str, blanks: list[Blank]) -> tuple[list[Blank], list[Blank]]:
    """Re-derive blank positions against ``text``.

    Each blank moves to the occurrence of its word nearest to its old position
    that is not already claimed by another blank. Returns ``(kept, dropped)``;
    ``kept`` preserves the original list order.
    """
    taken: list[tuple[int, int]] = []
    moved: dict[str, Blank] = {}
    dropped: list[Blank] = []
    for blank in sorted(blanks, key=lambda b: b.position):
        free = [
            position
            for position in _occurrences(text, blank.word)
            if not _overlaps(position, position + len(blank.word), taken)
        ]
        if not free:
            dropped.append(blank)
            continue
        best = min(free, key=lambda position: (abs(position - blank.position), position))
        taken.append((best, best + len(blank.word)))
        moved[blank.id] = blank.model_copy(update={"position": best})
    kept = [moved[blank.id] for blank in blanks if blank.id in moved]
    return kept, dropped


class ClozeEditor(QuestionEditor[ClozeQuestion]):
    def __init__(self, question: ClozeQuestion, on_update: UpdateCallback, on_delete: DeleteCallback) -> None:
        super().__init__(question, on_update, on_delete)
        self.selection: PendingSelection | None = None

    def select(self, start: int, end: int) -> PendingSelection | None:
        text = self.question.text
        if not 0 <= start < end <= len(text):
            self.selection = None
            return None
        raw = text[start:end]
        word = raw.strip()
        if not word:
            self.selection = None
            return None
        start += len(raw) - len(raw.lstrip())
        self.selection = PendingSelection(start=start, end=start + len(word), text=word)
        return self.selection

    def clear_selection(self) -> None:
        self.selection = None

    def create_blank(self) -> Blank:
        selection = self.selection
        if selection is None:
            raise EditorError("Select a word in the text first")
        if self.question.text[selection.start : selection.end] != selection.text:
            self.selection = None
            raise EditorError("Selection no longer matches the text")
        for blank in self.question.blanks:
            if selection.start < blank.end and blank.position < selection.end:
                raise EditorError(f"Selection overlaps blank {blank.id}")

        blank = Blank(id=make_id("blank"), word=selection.text, position=selection.start)
        self.update(blanks=[*self.question.blanks, blank])
        self.selection = None
        return blank

    def delete_blank(self, blank_id: str) -> None:
        self.update(blanks=[blank for blank in self.question.blanks if blank.id != blank_id])

    def move_blank(self, active_id: str, over_id: str) -> None:
        blanks = move_by_id(self.question.blanks, active_id, over_id)
        if blanks != self.question.blanks:
            self.update(blanks=blanks)

    def set_text(self, text: str) -> list[Blank]:
        kept, dropped = relocate_blanks(text, self.question.blanks)
        self.selection = None
        self.update(text=text, blanks=kept)
        return dropped

    def segments(self) -> list[tuple[str, Blank | None]]:
        return self.question.segments()
