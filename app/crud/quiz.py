from sqlalchemy.orm import Session, selectinload
from typing import Optional

from app.crud.base import CRUDBase
from app.models.quiz import Quiz
from app.schemas.quiz import QuizCreate

class CRUDQuiz(CRUDBase[Quiz, QuizCreate, QuizCreate]):

    def _query_with_relationships(self, db: Session):
        return db.query(Quiz).options(
            selectinload(Quiz.questions),
            selectinload(Quiz.course)
        )

    def get(self, db: Session, id: int) -> Optional[Quiz]:
        return self._query_with_relationships(db).filter(Quiz.id == id).first()

quiz = CRUDQuiz(Quiz)
