from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class QuestionGrade(Base):
    __tablename__ = "question_grades"
    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_question_grades_attempt_question"),
    )

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("quiz_attempts.id"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    points_awarded = Column(Float, nullable=False)
    feedback = Column(String, nullable=True)
    graded_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    graded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    attempt = relationship("QuizAttempt", back_populates="grades")
    question = relationship("Question", back_populates="grades")
    grader = relationship("User")
