from __future__ import annotations

from formforge.builder.base import DeleteCallback, EditorError, QuestionEditor, UpdateCallback, make_id
from formforge.schemas import ComprehensionQuestion, McqOption, McqQuestion

MIN_OPTIONS = 2


class ComprehensionEditor(QuestionEditor[ComprehensionQuestion]):
    """Editor for a reading passage with multiple-choice sub-questions.

    Every MCQ keeps at least two options and exactly one correct option
    through all of the operations below.
    """

    def __init__(self, question: ComprehensionQuestion, on_update: UpdateCallback, on_delete: DeleteCallback) -> None:
        super().__init__(question, on_update, on_delete)
        self.new_mcq_text = ""

    def set_passage(self, passage: str) -> ComprehensionQuestion:
        return self.update(passage=passage)

    def add_mcq(self, text: str | None = None) -> McqQuestion | None:
        text = (self.new_mcq_text if text is None else text).strip()
        if not text:
            return None
        mcq = McqQuestion(
            id=make_id("mcq"),
            question=text,
            options=[
                McqOption(id=make_id("option"), text="", is_correct=True),
                McqOption(id=make_id("option"), text="", is_correct=False),
            ],
        )
        self.update(questions=[*self.question.questions, mcq])
        self.new_mcq_text = ""
        return mcq

    def update_mcq(self, mcq_id: str, text: str) -> McqQuestion:
        return self._replace_mcq(self._require_mcq(mcq_id).model_copy(update={"question": text}))

    def delete_mcq(self, mcq_id: str) -> None:
        self.update(questions=[mcq for mcq in self.question.questions if mcq.id != mcq_id])

    def add_option(self, mcq_id: str, text: str = "") -> McqOption:
        mcq = self._require_mcq(mcq_id)
        option = McqOption(id=make_id("option"), text=text, is_correct=False)
        self._replace_mcq(mcq.model_copy(update={"options": [*mcq.options, option]}))
        return option

    def update_option(self, mcq_id: str, option_id: str, text: str) -> McqOption:
        mcq = self._require_mcq(mcq_id)
        self._require_option(mcq, option_id)
        options = [o.model_copy(update={"text": text}) if o.id == option_id else o for o in mcq.options]
        mcq = self._replace_mcq(mcq.model_copy(update={"options": options}))
        return self._require_option(mcq, option_id)

    def delete_option(self, mcq_id: str, option_id: str) -> None:
        mcq = self._require_mcq(mcq_id)
        removed = self._require_option(mcq, option_id)
        if len(mcq.options) <= MIN_OPTIONS:
            raise EditorError(f"A question needs at least {MIN_OPTIONS} options")

        options = [o for o in mcq.options if o.id != option_id]
        if removed.is_correct:
            options[0] = options[0].model_copy(update={"is_correct": True})
        self._replace_mcq(mcq.model_copy(update={"options": options}))

    def set_correct(self, mcq_id: str, option_id: str) -> McqQuestion:
        mcq = self._require_mcq(mcq_id)
        self._require_option(mcq, option_id)
        options = [o.model_copy(update={"is_correct": o.id == option_id}) for o in mcq.options]
        return self._replace_mcq(mcq.model_copy(update={"options": options}))

    def _replace_mcq(self, replacement: McqQuestion) -> McqQuestion:
        self.update(questions=[replacement if m.id == replacement.id else m for m in self.question.questions])
        return replacement

    def _require_mcq(self, mcq_id: str) -> McqQuestion:
        for mcq in self.question.questions:
            if mcq.id == mcq_id:
                return mcq
        raise EditorError(f"Unknown question: {mcq_id}")

    @staticmethod
    def _require_option(mcq: McqQuestion, option_id: str) -> McqOption:
        for option in mcq.options:
            if option.id == option_id:
                return option
        raise EditorError(f"Unknown option: {option_id}")
