from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Any, Dict
from datetime import datetime

from app.core.constants import QuestionTypeEnum, QuizAttemptStatusEnum

class QuestionGradeIn(BaseModel):
    """Request body for grading one question. Range is checked by the scoring service."""
    points_awarded: float
    feedback: Optional[str] = None

class QuestionGradeUpsert(BaseModel):
    attempt_id: int
    question_id: int
    points_awarded: float
    feedback: Optional[str] = None
    graded_by: int
    graded_at: datetime

class QuestionGrade(BaseModel):
    id: int
    attempt_id: int
    question_id: int
    points_awarded: float
    feedback: Optional[str] = None
    graded_by: int
    graded_at: datetime

    model_config = ConfigDict(from_attributes=True)

class AttemptScore(BaseModel):
    attempt_id: int
    score: float
    max_score: int
    status: QuizAttemptStatusEnum
    manual_questions: int
    graded_manual_questions: int

class GradeResult(BaseModel):
    grade: QuestionGrade
    attempt: AttemptScore

class BulkRecalculationResult(BaseModel):
    updated: int
    failed: List[int] = []

class QuestionAward(BaseModel):
    question_id: int
    question_text: str
    question_type: QuestionTypeEnum
    max_points: int
    submitted_answer: Optional[Any] = None
    correct_answer: Optional[Any] = None
    points_awarded: float
    needs_manual_grading: bool
    grade: Optional[QuestionGrade] = None

class GradingBreakdown(BaseModel):
    attempt_id: int
    score: Optional[float] = None
    status: QuizAttemptStatusEnum
    max_score: int
    questions: List[QuestionAward]

class ScoreBreakdown(BaseModel):
    """Result of scoring one attempt; awards are keyed by question id."""
    total: float
    max_score: int
    awards: Dict[int, float]
    manual_questions: int
    graded_manual_questions: int
