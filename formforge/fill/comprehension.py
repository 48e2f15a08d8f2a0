from __future__ import annotations

from formforge.schemas import ComprehensionQuestion


class ComprehensionSheet:
    def __init__(self, question: ComprehensionQuestion) -> None:
        self.question = question
        self.choices: dict[str, str] = {}

    def choose(self, mcq_id: str, option_id: str) -> None:
        for mcq in self.question.questions:
            if mcq.id == mcq_id:
                if option_id not in {option.id for option in mcq.options}:
                    raise ValueError(f"Unknown option: {option_id}")
                self.choices[mcq_id] = option_id
                return
        raise ValueError(f"Unknown question: {mcq_id}")

    def answer(self) -> dict[str, str]:
        return dict(self.choices)
