from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Any

from app.core.constants import QuestionTypeEnum, AUTO_GRADED_QUESTION_TYPES

class QuestionBase(BaseModel):
    question_text: str
    question_type: QuestionTypeEnum
    options: Optional[List[str]] = None
    points: int = Field(default=1, gt=0)
    order_index: int = 0

class QuestionCreate(QuestionBase):
    correct_answer: Optional[Any] = None

    @model_validator(mode="after")
    def require_correct_answer_for_auto_graded(self):
        if self.question_type in AUTO_GRADED_QUESTION_TYPES and self.correct_answer is None:
            raise ValueError(f"A correct_answer is required for {self.question_type.value} questions.")
        return self

class Question(QuestionBase):
    """Question as shown to students: never carries the answer key."""
    id: int
    quiz_id: int

    model_config = ConfigDict(from_attributes=True)

class QuestionWithCorrectAnswer(Question):
    # For teachers/admins who need to see the correct answer
    correct_answer: Optional[Any] = None
