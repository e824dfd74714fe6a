from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OptionView(BaseModel):
    model_config = ConfigDict(frozen=True)

    i: int
    text: str


class QuestionView(BaseModel):
    """Read-only projection of a question as shown to a participant."""

    model_config = ConfigDict(frozen=True)

    id: int
    orig_no: int = 0
    prompt: str
    explanation: str = ""
    options: List[OptionView]
    correct: List[int] = []
    image: str = ""

    @property
    def tag(self) -> str:
        return str(self.orig_no) if self.orig_no else ""


class QuizFull(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    questions: List[QuestionView]


class QuizOut(BaseModel):
    id: int
    title: str
    created_at: datetime

    class Config:
        from_attributes = True


class QuizRename(BaseModel):
    title: str = Field(min_length=1, max_length=255)


class ImportItem(BaseModel):
    orig_no: Optional[int] = None
    prompt: str
    options: List[str]
    correct: List[int] = []


class QuizImport(BaseModel):
    title: str = Field(min_length=1)
    items: List[ImportItem] = Field(min_length=1)


class QuestionUpdate(BaseModel):
    prompt: str
    # None: take the number from the prompt text
    orig_no: Optional[str | int] = None
    options: List[str]
    correct_index: int


class QuestionOut(BaseModel):
    id: int
    quiz_id: int
    orig_no: Optional[int] = None
    prompt: str

    class Config:
        from_attributes = True


class GradeRequest(BaseModel):
    # questions actually shown; all questions of the quiz when omitted
    question_ids: Optional[List[int]] = None
    answers: Dict[int, Optional[int]] = {}


class GradeOut(BaseModel):
    total: int
    correct_count: int
    score_percent: float
    wrong_ids: List[int]
    verdicts: Dict[int, bool]
    summary: str
