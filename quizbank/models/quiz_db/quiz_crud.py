import base64
from datetime import datetime, timezone
from typing import Callable, List, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from quizbank.core.errors import NotFoundError, StorageError, ValidationError
from quizbank.models.quiz_db.image_db import QuestionImage
from quizbank.models.quiz_db.option_db import Option
from quizbank.models.quiz_db.question_db import Question
from quizbank.models.quiz_db.quiz_db import Quiz
from quizbank.schemas.quiz.quiz_base import OptionView, QuestionView, QuizFull
from quizbank.services.daypo_import import ParsedQuiz
from quizbank.services.question_edit import normalize_orig_no, normalize_prompt, validate_question_fields

BACKUP_VERSION = 1


def _commit(db: Session):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Database commit failed")
        raise StorageError(str(e)) from e


def image_path(question: Question) -> str:
    return f"/public/questions/{question.id}/image" if question.image else ""


def to_question_view(question: Question, image_url: Callable[[Question], str] = image_path) -> QuestionView:
    opts = sorted(question.options, key=lambda o: o.opt_index)
    return QuestionView(
        id=question.id,
        orig_no=question.orig_no or 0,
        prompt=question.prompt,
        explanation=question.explanation or "",
        options=[OptionView(i=o.opt_index, text=o.text) for o in opts],
        correct=[o.opt_index for o in opts if o.is_correct],
        image=image_url(question),
    )


# Quizzes

def get_quiz(db: Session, quiz_id: int) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if not quiz:
        raise NotFoundError(f"Quiz {quiz_id} not found")
    return quiz


def list_quizzes(db: Session, skip: int = 0, limit: int = 100) -> List[Quiz]:
    return (
        db.query(Quiz)
        .order_by(Quiz.created_at.desc(), Quiz.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def count_quizzes(db: Session) -> int:
    return db.query(Quiz).count()


def load_quiz_full(db: Session, quiz_id: int, image_url: Callable[[Question], str] = image_path) -> QuizFull:
    quiz = get_quiz(db, quiz_id)
    return QuizFull(
        id=quiz.id,
        title=quiz.title,
        questions=[to_question_view(q, image_url) for q in quiz.questions],
    )


def create_quiz(db: Session, title: str) -> int:
    quiz = Quiz(title=title)
    db.add(quiz)
    db.flush()
    return quiz.id


def create_question(db: Session, quiz_id: int, orig_no: Optional[int], prompt: str, explanation: str = "") -> int:
    question = Question(
        quiz_id=quiz_id,
        orig_no=normalize_orig_no(orig_no),
        prompt=prompt,
        explanation=explanation or "",
    )
    db.add(question)
    db.flush()
    return question.id


def create_option(db: Session, question_id: int, opt_index: int, text: str, is_correct: bool) -> int:
    option = Option(question_id=question_id, opt_index=opt_index, text=text, is_correct=bool(is_correct))
    db.add(option)
    db.flush()
    return option.id


def import_parsed_quiz(db: Session, parsed: ParsedQuiz) -> Quiz:
    """Stores a parsed export as one quiz, all or nothing."""
    if not parsed.items:
        raise ValidationError("The quiz has no valid questions")

    try:
        quiz_id = create_quiz(db, parsed.title)
        for item in parsed.items:
            question_id = create_question(db, quiz_id, item.orig_no, item.prompt, "")
            for i, text in enumerate(item.options):
                create_option(db, question_id, i, text, i in item.correct)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Import of '{}' failed", parsed.title)
        raise StorageError(str(e)) from e
    _commit(db)

    logger.info("Imported quiz {} '{}' with {} questions", quiz_id, parsed.title, len(parsed.items))
    return get_quiz(db, quiz_id)


def rename_quiz(db: Session, quiz_id: int, title: str) -> Quiz:
    title = (title or "").strip()
    if not title:
        raise ValidationError("title is required")
    quiz = get_quiz(db, quiz_id)
    quiz.title = title[:255]
    _commit(db)
    db.refresh(quiz)
    return quiz


def delete_quiz(db: Session, quiz_id: int) -> None:
    quiz = get_quiz(db, quiz_id)
    db.delete(quiz)
    _commit(db)
    logger.info("Deleted quiz {}", quiz_id)


# Questions

def get_question(db: Session, question_id: int) -> Question:
    question = db.query(Question).filter(Question.id == question_id).first()
    if not question:
        raise NotFoundError(f"Question {question_id} not found")
    return question


def update_question(db: Session, question_id: int, orig_no, prompt: str, options: List[str], correct_index: int) -> Question:
    """Replaces prompt, number and the whole option set of a question.

    Options are never patched: the old ones are deleted and the new ones are
    inserted with indexes 0..n-1, only ``correct_index`` marked correct.
    """
    clean, opts, ci = validate_question_fields(prompt, options, correct_index)
    question = get_question(db, question_id)

    try:
        question.prompt = normalize_prompt(clean)
        question.orig_no = normalize_orig_no(orig_no)

        question.options.clear()
        db.flush()
        for i, text in enumerate(opts):
            question.options.append(Option(opt_index=i, text=text, is_correct=(i == ci)))
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(str(e)) from e
    _commit(db)
    db.refresh(question)
    return question


def delete_question(db: Session, question_id: int) -> None:
    question = get_question(db, question_id)
    db.delete(question)
    _commit(db)
    logger.info("Deleted question {}", question_id)


# Images

def get_image(db: Session, question_id: int) -> QuestionImage:
    image = db.query(QuestionImage).filter(QuestionImage.question_id == question_id).first()
    if not image:
        raise NotFoundError(f"Question {question_id} has no image")
    return image


def put_image(db: Session, question_id: int, data: bytes, mime: Optional[str]) -> QuestionImage:
    question = get_question(db, question_id)
    mime = mime or "application/octet-stream"
    if question.image:
        question.image.data = data
        question.image.mime = mime
    else:
        question.image = QuestionImage(data=data, mime=mime)
    _commit(db)
    return question.image


def delete_image(db: Session, question_id: int) -> None:
    get_question(db, question_id)
    image = db.query(QuestionImage).filter(QuestionImage.question_id == question_id).first()
    if not image:
        return
    db.delete(image)
    _commit(db)


def to_data_url(image: QuestionImage) -> str:
    return f"data:{image.mime};base64,{base64.b64encode(image.data).decode('ascii')}"


def from_data_url(data_url: str) -> tuple:
    header, _, payload = (data_url or "").partition(",")
    if not header.startswith("data:") or not header.endswith(";base64"):
        raise ValidationError("image dataUrl must be a base64 data URL")
    mime = header[len("data:"):-len(";base64")] or "application/octet-stream"
    return base64.b64decode(payload), mime


# Backup

def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def export_backup(db: Session) -> dict:
    return {
        "version": BACKUP_VERSION,
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "quizzes": [
            {"id": q.id, "title": q.title, "createdAt": _iso(q.created_at)}
            for q in db.query(Quiz).order_by(Quiz.id)
        ],
        "questions": [
            {
                "id": q.id,
                "quizId": q.quiz_id,
                "origNo": q.orig_no,
                "prompt": q.prompt,
                "explanation": q.explanation or "",
            }
            for q in db.query(Question).order_by(Question.id)
        ],
        "options": [
            {
                "id": o.id,
                "questionId": o.question_id,
                "optIndex": o.opt_index,
                "text": o.text,
                "isCorrect": 1 if o.is_correct else 0,
            }
            for o in db.query(Option).order_by(Option.id)
        ],
        "images": [
            {"questionId": img.question_id, "mime": img.mime, "dataUrl": to_data_url(img)}
            for img in db.query(QuestionImage).order_by(QuestionImage.question_id)
        ],
    }


def _backup_rows(snapshot: dict, key: str) -> List[dict]:
    rows = snapshot.get(key) or []
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise ValidationError(f"Malformed backup: '{key}' must be a list of objects")
    return rows


def _check_backup_questions(questions: List[dict], options: List[dict], quiz_ids: set):
    """Every restored question needs a prompt and at least 2 non-empty options."""
    texts = {}
    for o in options:
        texts.setdefault(o.get("questionId"), []).append(str(o.get("text") or "").strip())

    for q in questions:
        if q.get("quizId") not in quiz_ids:
            continue
        if not normalize_prompt(q.get("prompt")):
            raise ValidationError(f"Malformed backup: question {q.get('id')!r} has no prompt")
        opts = texts.get(q.get("id"), [])
        if len(opts) < 2 or not all(opts):
            raise ValidationError(f"Malformed backup: question {q.get('id')!r} needs at least 2 non-empty options")


def restore_backup(db: Session, snapshot: dict) -> List[int]:
    """Inserts every quiz of a backup as new rows. Returns the new quiz ids in backup order.

    The whole snapshot is checked before anything is written; a bad one commits nothing.
    """
    version = snapshot.get("version") if isinstance(snapshot, dict) else None
    if version != BACKUP_VERSION:
        raise ValidationError(f"Unsupported backup version: {version!r}")

    quizzes = _backup_rows(snapshot, "quizzes")
    questions = _backup_rows(snapshot, "questions")
    options = _backup_rows(snapshot, "options")
    images = _backup_rows(snapshot, "images")

    quiz_ids = {}
    question_ids = {}
    try:
        _check_backup_questions(questions, options, {q.get("id") for q in quizzes})

        for q in quizzes:
            quiz_ids[q["id"]] = create_quiz(db, q.get("title") or "Cuestionario")

        for q in questions:
            if q.get("quizId") not in quiz_ids:
                continue
            question_ids[q["id"]] = create_question(
                db, quiz_ids[q["quizId"]], q.get("origNo"), normalize_prompt(q.get("prompt")), q.get("explanation") or ""
            )

        for o in options:
            if o.get("questionId") not in question_ids:
                continue
            create_option(
                db, question_ids[o["questionId"]], int(o["optIndex"]), str(o.get("text")).strip(), bool(o.get("isCorrect"))
            )

        for img in images:
            if img.get("questionId") not in question_ids:
                continue
            data, mime = from_data_url(img.get("dataUrl"))
            db.add(QuestionImage(question_id=question_ids[img["questionId"]], data=data, mime=img.get("mime") or mime))
    except ValidationError:
        db.rollback()
        raise
    except (KeyError, TypeError, ValueError) as e:
        db.rollback()
        raise ValidationError(f"Malformed backup: {e}") from e
    except SQLAlchemyError as e:
        db.rollback()
        raise StorageError(str(e)) from e
    _commit(db)

    logger.info("Restored {} quizzes from backup", len(quiz_ids))
    return list(quiz_ids.values())
