from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from sqlalchemy.orm import Session

from app.core.constants import QuizAttemptStatusEnum
from app.crud.base import CRUDBase
from app.models.quiz_attempt import QuizAttempt
from app.schemas.quiz_attempt import QuizAttemptCreate, AnswersUpdate

ENGINE_OWNED_FIELDS = {"score", "status", "graded_at"}


class CRUDQuizAttempt(CRUDBase[QuizAttempt, QuizAttemptCreate, AnswersUpdate]):

    def get_for_update(self, db: Session, id: int) -> Optional[QuizAttempt]:
        # Row lock so that concurrent recomputations of one attempt serialize
        return (
            db.query(QuizAttempt)
            .filter(QuizAttempt.id == id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_all_ids(self, db: Session) -> List[int]:
        return [row[0] for row in db.query(QuizAttempt.id).order_by(QuizAttempt.id).all()]

    def get_by_student_and_quiz(self, db: Session, student_id: int, quiz_id: int) -> List[QuizAttempt]:
        return (
            db.query(QuizAttempt)
            .filter(QuizAttempt.student_id == student_id)
            .filter(QuizAttempt.quiz_id == quiz_id)
            .order_by(QuizAttempt.started_at.desc(), QuizAttempt.id.desc())
            .all()
        )

    def get_all_by_quiz(self, db: Session, quiz_id: int, skip: int = 0, limit: int = 100) -> List[QuizAttempt]:
        return (
            db.query(QuizAttempt)
            .filter(QuizAttempt.quiz_id == quiz_id)
            .order_by(QuizAttempt.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count_by_quiz(self, db: Session, quiz_id: int) -> int:
        return db.query(QuizAttempt).filter(QuizAttempt.quiz_id == quiz_id).count()

    def update(
        self, db: Session, *, db_obj: QuizAttempt, obj_in: Union[AnswersUpdate, Dict[str, Any]], commit: bool = True
    ) -> QuizAttempt:
        fields = obj_in.keys() if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True).keys()
        engine_owned = sorted(ENGINE_OWNED_FIELDS.intersection(fields))
        if engine_owned:
            raise ValueError(f"{', '.join(engine_owned)} can only be written by write_score")
        return super().update(db, db_obj=db_obj, obj_in=obj_in, commit=commit)

    def mark_submitted(
        self, db: Session, *, db_obj: QuizAttempt, answers: Dict[str, Any], submitted_at: datetime
    ) -> QuizAttempt:
        db_obj.answers = answers
        db_obj.status = QuizAttemptStatusEnum.SUBMITTED
        db_obj.submitted_at = submitted_at
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def write_score(
        self,
        db: Session,
        *,
        db_obj: QuizAttempt,
        score: float,
        status: QuizAttemptStatusEnum,
        graded_at: Optional[datetime],
    ) -> QuizAttempt:
        """Sets score, status and graded_at together and flushes them as one UPDATE.

        Only the scoring service calls this; the caller owns the commit.
        """
        db_obj.score = score
        db_obj.status = status
        db_obj.graded_at = graded_at
        db.add(db_obj)
        db.flush()
        return db_obj

quiz_attempt = CRUDQuizAttempt(QuizAttempt)
