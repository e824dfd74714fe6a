from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from quizbank.schemas.quiz.quiz_base import QuestionView


@dataclass
class GradeResult:
    total: int
    correct_count: int
    score_percent: float
    wrong_ids: List[int] = field(default_factory=list)
    verdicts: Dict[int, bool] = field(default_factory=dict)

    @property
    def can_retry(self) -> bool:
        return bool(self.wrong_ids)

    def summary(self) -> str:
        return f"Resultado: {self.correct_count}/{self.total} ({self.score_percent:.1f}%)"


def is_correct(question: QuestionView, selected: Optional[int]) -> bool:
    # membership, not equality: multi-answer questions accept any marked option
    return selected is not None and selected in question.correct


def grade(questions: Sequence[QuestionView], answers: Mapping[int, Optional[int]]) -> GradeResult:
    """Scores ``answers`` (question id -> chosen option index or None) over ``questions``.

    Questions without an entry in ``answers`` count as unanswered, hence wrong.
    """
    correct = 0
    wrong = []
    verdicts = {}
    for q in questions:
        ok = is_correct(q, answers.get(q.id))
        verdicts[q.id] = ok
        if ok:
            correct += 1
        else:
            wrong.append(q.id)

    total = len(questions)
    score = (correct / total * 100) if total else 0.0
    return GradeResult(
        total=total,
        correct_count=correct,
        score_percent=score,
        wrong_ids=wrong,
        verdicts=verdicts,
    )


def retry(questions: Sequence[QuestionView], wrong_ids: Iterable[int]) -> List[QuestionView]:
    wrong = set(wrong_ids)
    return [q for q in questions if q.id in wrong]
