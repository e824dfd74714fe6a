from sqlalchemy import Column, Integer, String, LargeBinary, ForeignKey
from sqlalchemy.orm import relationship
from quizbank.core.database import Base


class QuestionImage(Base):
    __tablename__ = "question_images"

    # keyed by question id, not orig_no: source numbers can repeat or be missing
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True)
    mime = Column(String, nullable=False, default="application/octet-stream")
    data = Column(LargeBinary, nullable=False)

    question = relationship("Question", back_populates="image")
