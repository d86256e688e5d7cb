from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import QuestionTypeEnum, AUTO_GRADED_QUESTION_TYPES, MANUALLY_GRADED_QUESTION_TYPES

class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False, index=True)
    question_text = Column(String, nullable=False)
    question_type = Column(Enum(QuestionTypeEnum), nullable=False)
    options = Column(JSON, nullable=True) # For multiple choice, true/false
    correct_answer = Column(JSON, nullable=True) # Compared verbatim against the submitted value
    points = Column(Integer, nullable=False, default=1)
    order_index = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    quiz = relationship("Quiz", back_populates="questions")
    grades = relationship("QuestionGrade", back_populates="question", cascade="all, delete-orphan")

    @property
    def is_auto_graded(self) -> bool:
        return self.question_type in AUTO_GRADED_QUESTION_TYPES

    @property
    def is_manually_graded(self) -> bool:
        return self.question_type in MANUALLY_GRADED_QUESTION_TYPES
