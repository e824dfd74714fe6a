from sqlalchemy import Column, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from quizbank.core.database import Base


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    orig_no = Column(Integer, nullable=True, index=True)  # numbering from the source, may repeat
    prompt = Column(Text, nullable=False)
    explanation = Column(Text, nullable=False, default="")

    quiz = relationship("Quiz", back_populates="questions")
    options = relationship(
        "Option",
        back_populates="question",
        order_by="Option.opt_index",
        cascade="all, delete-orphan",
    )
    image = relationship(
        "QuestionImage",
        back_populates="question",
        uselist=False,
        cascade="all, delete-orphan",
    )
