from typing import List
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.question import Question
from app.schemas.question import QuestionCreate

class CRUDQuestion(CRUDBase[Question, QuestionCreate, QuestionCreate]):
    def get_by_quiz(self, db: Session, *, quiz_id: int) -> List[Question]:
        return (
            db.query(self.model)
            .filter(self.model.quiz_id == quiz_id)
            .order_by(self.model.order_index, self.model.id)
            .all()
        )

question = CRUDQuestion(Question)
