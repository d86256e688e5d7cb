from pydantic import BaseModel, ConfigDict
from typing import Optional, Dict, Any, List
from datetime import datetime

from app.core.constants import QuizAttemptStatusEnum
from app.schemas.question import Question

class QuizAttemptCreate(BaseModel):
    quiz_id: int
    student_id: int
    answers: Dict[str, Any] = {}

class AnswersUpdate(BaseModel):
    answers: Dict[str, Any]

class QuizAttempt(BaseModel):
    id: int
    quiz_id: int
    student_id: int
    answers: Dict[str, Any] = {}
    score: Optional[float] = None
    status: QuizAttemptStatusEnum
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    graded_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class QuizAttemptDetails(BaseModel):
    attempt: QuizAttempt
    questions: List[Question]
    max_score: int
