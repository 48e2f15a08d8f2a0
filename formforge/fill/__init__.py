from __future__ import annotations

from formforge.fill.categorize import CategorizeBoard
from formforge.fill.cloze import ClozeSheet, WordToken
from formforge.fill.comprehension import ComprehensionSheet
from formforge.fill.session import FillSession, FormNotPublishedError

__all__ = [
    "CategorizeBoard",
    "ClozeSheet",
    "ComprehensionSheet",
    "FillSession",
    "FormNotPublishedError",
    "WordToken",
]
