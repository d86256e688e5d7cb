from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.dialects import postgresql, sqlite

from app.crud.base import CRUDBase
from app.models.question_grade import QuestionGrade
from app.schemas.question_grade import QuestionGradeUpsert

class CRUDQuestionGrade(CRUDBase[QuestionGrade, QuestionGradeUpsert, QuestionGradeUpsert]):

    def get_by_attempt_and_question(self, db: Session, *, attempt_id: int, question_id: int) -> Optional[QuestionGrade]:
        return (
            db.query(QuestionGrade)
            .filter(QuestionGrade.attempt_id == attempt_id)
            .filter(QuestionGrade.question_id == question_id)
            .first()
        )

    def get_all_by_attempt(self, db: Session, *, attempt_id: int) -> List[QuestionGrade]:
        return db.query(QuestionGrade).filter(QuestionGrade.attempt_id == attempt_id).all()

    def upsert(self, db: Session, *, obj_in: QuestionGradeUpsert, commit: bool = True) -> QuestionGrade:
        """Inserts the grade or overwrites the one already stored for (attempt_id, question_id)."""
        values = obj_in.model_dump()
        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(QuestionGrade).values(**values)
        elif dialect == "sqlite":
            stmt = sqlite.insert(QuestionGrade).values(**values)
        else:
            return self._upsert_with_orm(db, values=values, commit=commit)

        stmt = stmt.on_conflict_do_update(
            index_elements=[QuestionGrade.attempt_id, QuestionGrade.question_id],
            set_={
                "points_awarded": stmt.excluded.points_awarded,
                "feedback": stmt.excluded.feedback,
                "graded_by": stmt.excluded.graded_by,
                "graded_at": stmt.excluded.graded_at,
            },
        )
        db.execute(stmt)
        if commit:
            db.commit()
        db.expire_all()
        return self.get_by_attempt_and_question(db, attempt_id=obj_in.attempt_id, question_id=obj_in.question_id)

    def _upsert_with_orm(self, db: Session, *, values: dict, commit: bool) -> QuestionGrade:
        existing = self.get_by_attempt_and_question(
            db, attempt_id=values["attempt_id"], question_id=values["question_id"]
        )
        if existing:
            return self.update(db, db_obj=existing, obj_in=values, commit=commit)
        return self.create(db, obj_in=values, commit=commit)

question_grade = CRUDQuestionGrade(QuestionGrade)
