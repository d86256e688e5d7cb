from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

class QuizBase(BaseModel):
    course_id: int
    title: str
    description: Optional[str] = None
    time_limit_minutes: Optional[int] = Field(default=None, gt=0)
    max_attempts: Optional[int] = Field(default=None, gt=0)
    is_published: bool = True

class QuizCreate(QuizBase):
    pass

class Quiz(QuizBase):
    id: int
    total_points: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
