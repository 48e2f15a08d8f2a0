from __future__ import annotations

from formforge.builder.base import EditorError, QuestionEditor, make_id, move_by_id
from formforge.builder.categorize import CategorizeEditor
from formforge.builder.cloze import ClozeEditor, PendingSelection, relocate_blanks
from formforge.builder.comprehension import ComprehensionEditor
from formforge.builder.draft import FormDraft

__all__ = [
    "CategorizeEditor",
    "ClozeEditor",
    "ComprehensionEditor",
    "EditorError",
    "FormDraft",
    "PendingSelection",
    "QuestionEditor",
    "make_id",
    "move_by_id",
    "relocate_blanks",
]
