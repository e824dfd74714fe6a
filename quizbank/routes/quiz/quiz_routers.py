from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from quizbank.core.database import get_db
from quizbank.core.errors import ValidationError
from quizbank.models.quiz_db.quiz_crud import count_quizzes, get_image, list_quizzes, load_quiz_full
from quizbank.schemas.common.page_response import PageResponse
from quizbank.schemas.quiz.quiz_base import GradeOut, GradeRequest, QuizFull, QuizOut
from quizbank.services import grading
from quizbank.services.sampling import pick_questions

quiz_router = APIRouter(prefix="/public", tags=["Quiz"])


@quiz_router.get("/quizzes", response_model=PageResponse[QuizOut])
def get_quizzes(
    page: int = Query(1, ge=1),
    size: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db)
):
    skip = (page - 1) * size
    total = count_quizzes(db)
    quizzes = list_quizzes(db, skip=skip, limit=size)

    return PageResponse[QuizOut](
        page=page,
        size=size,
        total=total,
        has_next=(page * size) < total,
        has_prev=page > 1,
        items=[QuizOut.model_validate(q) for q in quizzes]
    )


@quiz_router.get("/quizzes/{quiz_id}", response_model=QuizFull)
def get_quiz(
    quiz_id: int,
    limit: Optional[int] = Query(None, description="Show only N questions; all when omitted"),
    randomize: bool = Query(False),
    db: Session = Depends(get_db)
):
    full = load_quiz_full(db, quiz_id)
    if limit is None:
        return full
    shown = pick_questions(full.questions, quiz_id, limit, randomize)
    return full.model_copy(update={"questions": shown})


@quiz_router.post("/quizzes/{quiz_id}/grade", response_model=GradeOut)
def grade_quiz(quiz_id: int, payload: GradeRequest, db: Session = Depends(get_db)):
    full = load_quiz_full(db, quiz_id)
    questions = full.questions
    if payload.question_ids is not None:
        by_id = {q.id: q for q in full.questions}
        unknown = [qid for qid in payload.question_ids if qid not in by_id]
        if unknown:
            raise ValidationError(f"Questions not in quiz {quiz_id}: {unknown}")
        questions = [by_id[qid] for qid in payload.question_ids]

    result = grading.grade(questions, payload.answers)
    return GradeOut(
        total=result.total,
        correct_count=result.correct_count,
        score_percent=result.score_percent,
        wrong_ids=result.wrong_ids,
        verdicts=result.verdicts,
        summary=result.summary(),
    )


@quiz_router.get("/questions/{question_id}/image")
def get_question_image(question_id: int, db: Session = Depends(get_db)):
    image = get_image(db, question_id)
    return Response(content=image.data, media_type=image.mime)
