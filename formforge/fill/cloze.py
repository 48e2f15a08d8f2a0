from __future__ import annotations

import random
from dataclasses import dataclass

from formforge.schemas import Blank, ClozeQuestion


@dataclass(frozen=True)
class WordToken:
    id: str
    word: str


class ClozeSheet:
    """Answer capture for a cloze question.

    Blanks can be filled by typing (:meth:`type_word`) or by dragging one of
    the pre-supplied word tokens into a slot (:meth:`place`). Each token is
    used at most once; removing a placed token returns it to the pool.
    """

    def __init__(self, question: ClozeQuestion, rng: random.Random | None = None) -> None:
        self.question = question
        self.tokens = [WordToken(id=f"token_{blank.id}", word=blank.word) for blank in question.blanks]
        (rng or random.Random()).shuffle(self.tokens)
        self.typed: dict[str, str] = {}
        self.placed: dict[str, str] = {}

    def segments(self) -> list[tuple[str, Blank | None]]:
        return self.question.segments()

    def _require_blank(self, blank_id: str) -> None:
        if blank_id not in {blank.id for blank in self.question.blanks}:
            raise ValueError(f"Unknown blank: {blank_id}")

    def _token(self, token_id: str) -> WordToken:
        for token in self.tokens:
            if token.id == token_id:
                return token
        raise ValueError(f"Unknown token: {token_id}")

    def type_word(self, blank_id: str, word: str) -> None:
        self._require_blank(blank_id)
        self.remove(blank_id)
        if word:
            self.typed[blank_id] = word
        else:
            self.typed.pop(blank_id, None)

    @property
    def available_tokens(self) -> list[WordToken]:
        used = set(self.placed.values())
        return [token for token in self.tokens if token.id not in used]

    def place(self, token_id: str, blank_id: str) -> None:
        self._require_blank(blank_id)
        self._token(token_id)
        for slot, placed_token in list(self.placed.items()):
            if placed_token == token_id:
                del self.placed[slot]
        self.typed.pop(blank_id, None)
        self.placed[blank_id] = token_id

    def remove(self, blank_id: str) -> str | None:
        self._require_blank(blank_id)
        self.typed.pop(blank_id, None)
        return self.placed.pop(blank_id, None)

    def answer(self) -> dict[str, str]:
        words = {token.id: token.word for token in self.tokens}
        result: dict[str, str] = {}
        for blank in self.question.blanks:
            if blank.id in self.placed:
                result[blank.id] = words[self.placed[blank.id]]
            elif blank.id in self.typed:
                result[blank.id] = self.typed[blank.id]
        return result
