import os

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from loguru import logger
from sqlalchemy.orm import Session

from quizbank.core.config import settings
from quizbank.core.database import get_db
from quizbank.core.errors import ValidationError
from quizbank.core.security import require_admin
from quizbank.models.quiz_db import quiz_crud
from quizbank.schemas.quiz.quiz_base import QuestionOut, QuestionUpdate, QuizImport, QuizOut, QuizRename
from quizbank.services.daypo_import import ParsedItem, ParsedQuiz, parse_daypo_xml
from quizbank.services.question_edit import split_edit_prompt

admin_router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@admin_router.post("/quizzes/import", response_model=QuizOut)
def import_quiz(payload: QuizImport, db: Session = Depends(get_db)):
    """Imports a quiz that was already parsed client side."""
    items = []
    for n, it in enumerate(payload.items, start=1):
        options = [o.strip() for o in it.options]
        if not it.prompt.strip() or len(options) < 2 or not all(options):
            raise ValidationError(f"Item {n} needs a prompt and at least 2 non-empty options")
        correct = sorted({i for i in it.correct if 0 <= i < len(options)})
        items.append(ParsedItem(orig_no=it.orig_no or 0, prompt=it.prompt.strip(), options=options, correct=correct))

    return quiz_crud.import_parsed_quiz(db, ParsedQuiz(title=payload.title.strip(), items=items))


@admin_router.post("/quizzes/import-xml", response_model=QuizOut)
async def import_quiz_xml(file: UploadFile = File(...), db: Session = Depends(get_db)):
    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = raw.decode("latin-1")
    parsed = parse_daypo_xml(text)
    logger.info("XML upload '{}' -> {} items", file.filename, len(parsed.items))
    return quiz_crud.import_parsed_quiz(db, parsed)


@admin_router.patch("/quizzes/{quiz_id}", response_model=QuizOut)
def rename_quiz(quiz_id: int, payload: QuizRename, db: Session = Depends(get_db)):
    return quiz_crud.rename_quiz(db, quiz_id, payload.title)


@admin_router.delete("/quizzes/{quiz_id}")
def delete_quiz(quiz_id: int, db: Session = Depends(get_db)):
    quiz_crud.delete_quiz(db, quiz_id)
    return {"ok": True}


@admin_router.put("/questions/{question_id}", response_model=QuestionOut)
def update_question(question_id: int, payload: QuestionUpdate, db: Session = Depends(get_db)):
    orig_no, prompt = split_edit_prompt(payload.prompt, payload.orig_no)
    return quiz_crud.update_question(db, question_id, orig_no, prompt, payload.options, payload.correct_index)


@admin_router.delete("/questions/{question_id}")
def delete_question(question_id: int, db: Session = Depends(get_db)):
    quiz_crud.delete_question(db, question_id)
    return {"ok": True}


@admin_router.post("/questions/{question_id}/image")
async def upload_question_image(question_id: int, file: UploadFile = File(...), db: Session = Depends(get_db)):
    ext = os.path.splitext(file.filename or "")[1].lower()
    if ext not in settings.IMAGE_EXTENSIONS:
        raise ValidationError(f"Unsupported image type '{ext}'. Allowed: {', '.join(settings.IMAGE_EXTENSIONS)}")

    data = await file.read()
    if not data:
        raise ValidationError("Empty file")
    if len(data) > settings.MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="Image too large")

    image = quiz_crud.put_image(db, question_id, data, file.content_type)
    return {"ok": True, "question_id": image.question_id, "mime": image.mime, "url": f"/public/questions/{question_id}/image"}


@admin_router.delete("/questions/{question_id}/image")
def delete_question_image(question_id: int, db: Session = Depends(get_db)):
    quiz_crud.delete_image(db, question_id)
    return {"ok": True}


@admin_router.get("/export")
def export_backup(db: Session = Depends(get_db)):
    return quiz_crud.export_backup(db)


@admin_router.post("/restore")
def restore_backup(snapshot: dict, db: Session = Depends(get_db)):
    quiz_ids = quiz_crud.restore_backup(db, snapshot)
    return {"ok": True, "quiz_ids": quiz_ids}
