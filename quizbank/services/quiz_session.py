"""
Quiz-taking flow: open -> answer -> grade -> retry the wrong ones.

A :class:`QuizSession` is an immutable value; every operation takes a session
and returns the next one, so a failed step leaves the caller's session as it
was. Sessions only read through the ``loader`` they are given and never write
to the database.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from loguru import logger

from quizbank.core.errors import ValidationError
from quizbank.schemas.quiz.quiz_base import QuestionView, QuizFull
from quizbank.services import grading
from quizbank.services.grading import GradeResult
from quizbank.services.sampling import pick_questions

QuizLoader = Callable[[int], QuizFull]

_UNSET = object()


class SessionState(str, Enum):
    empty = "empty"
    loaded = "loaded"
    graded = "graded"
    retry_filtered = "retry_filtered"


@dataclass(frozen=True)
class QuizSession:
    state: SessionState = SessionState.empty
    quiz_id: Optional[int] = None
    title: str = ""
    limit: Optional[int] = None
    randomize: bool = False
    all_questions: Tuple[QuestionView, ...] = ()
    shown: Tuple[QuestionView, ...] = ()
    answers: Dict[int, Optional[int]] = field(default_factory=dict)
    result: Optional[GradeResult] = None

    @property
    def wrong_ids(self):
        return list(self.result.wrong_ids) if self.result else []

    @property
    def can_retry(self) -> bool:
        return self.state == SessionState.graded and bool(self.wrong_ids)


def open_quiz(session: QuizSession, quiz_id: int, loader: QuizLoader) -> QuizSession:
    full = loader(quiz_id)
    shown = pick_questions(full.questions, quiz_id, session.limit, session.randomize)
    logger.debug("Opened quiz {}: showing {} of {} questions", quiz_id, len(shown), len(full.questions))
    return replace(
        session,
        state=SessionState.loaded,
        quiz_id=full.id,
        title=full.title,
        all_questions=tuple(full.questions),
        shown=tuple(shown),
        answers={},
        result=None,
    )


def change_settings(session: QuizSession, loader: QuizLoader, limit=_UNSET, randomize=_UNSET) -> QuizSession:
    """Updates sampling settings; an open quiz is re-opened with them, dropping any grading."""
    updated = replace(
        session,
        limit=session.limit if limit is _UNSET else limit,
        randomize=session.randomize if randomize is _UNSET else bool(randomize),
    )
    if updated.quiz_id is None:
        return updated
    return open_quiz(updated, updated.quiz_id, loader)


def answer(session: QuizSession, question_id: int, option_index: Optional[int]) -> QuizSession:
    if session.state == SessionState.empty:
        raise ValidationError("No quiz is open")

    question = next((q for q in session.shown if q.id == question_id), None)
    if question is None:
        raise ValidationError(f"Question {question_id} is not part of this attempt")
    if option_index is not None and option_index not in {o.i for o in question.options}:
        raise ValidationError(f"Question {question_id} has no option {option_index}")

    answers = dict(session.answers)
    answers[question_id] = option_index
    return replace(session, answers=answers)


def grade(session: QuizSession) -> QuizSession:
    if session.state == SessionState.empty:
        raise ValidationError("No quiz is open")

    result = grading.grade(session.shown, session.answers)
    logger.info("Quiz {}: {}", session.quiz_id, result.summary())
    return replace(session, state=SessionState.graded, result=result)


def retry(session: QuizSession) -> QuizSession:
    """Keeps only the questions missed in the last grading, with fresh answers."""
    if not session.can_retry:
        raise ValidationError("Nothing to retry")

    return replace(
        session,
        state=SessionState.retry_filtered,
        shown=tuple(grading.retry(session.shown, session.wrong_ids)),
        answers={},
        result=None,
    )
