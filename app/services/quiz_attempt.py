from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.core.constants import QuizAttemptStatusEnum
from app.crud.quiz import quiz as crud_quiz
from app.crud.question import question as crud_question
from app.crud.quiz_attempt import quiz_attempt as crud_quiz_attempt
from app.models.quiz import Quiz
from app.models.quiz_attempt import QuizAttempt
from app.schemas.quiz_attempt import QuizAttemptCreate, QuizAttemptDetails, QuizAttempt as QuizAttemptSchema
from app.schemas.question import Question as QuestionSchema
from app.schemas.user import UserContext
from app.services.scoring import scoring_service
from app.utils.permission import PermissionHelper as permission_helper


class QuizAttemptService:

    def _get_quiz(self, db: Session, quiz_id: int) -> Quiz:
        quiz = crud_quiz.get(db, id=quiz_id)
        if not quiz:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found.")
        return quiz

    def _get_attempt(self, db: Session, attempt_id: int) -> QuizAttempt:
        attempt = crud_quiz_attempt.get(db, id=attempt_id)
        if not attempt:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz attempt not found.")
        return attempt

    def _require_attempt_ownership_and_in_progress(self, current_user_context: UserContext, attempt: QuizAttempt):
        if attempt.student_id != current_user_context.user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only answer your own quiz attempts."
            )

        if attempt.status != QuizAttemptStatusEnum.IN_PROGRESS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This quiz attempt has already been submitted."
            )

    def _require_attempt_view_permission(self, db: Session, current_user_context: UserContext, attempt: QuizAttempt):
        if attempt.student_id == current_user_context.user.id:
            return

        quiz = self._get_quiz(db, attempt.quiz_id)
        if not permission_helper.can_manage_course(current_user_context, quiz.course):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only view your own quiz attempts."
            )

    def _validate_answer_keys(self, db: Session, attempt: QuizAttempt, answers: Dict[str, Any]):
        quiz_question_ids = {str(q.id) for q in crud_question.get_by_quiz(db, quiz_id=attempt.quiz_id)}
        invalid = sorted(key for key in answers if str(key) not in quiz_question_ids)
        if invalid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid question_id(s): {invalid}. All questions must belong to the quiz."
            )

    def start_attempt(self, db: Session, *, quiz_id: int, current_user_context: UserContext) -> QuizAttempt:
        quiz = self._get_quiz(db, quiz_id)

        if not permission_helper.is_student(current_user_context):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only students can take quizzes.")

        if not permission_helper.is_student_of_course(current_user_context.user, quiz.course):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You must be enrolled in this course to take this quiz."
            )

        if not quiz.is_published:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This quiz is not open for attempts.")

        existing_attempts = crud_quiz_attempt.get_by_student_and_quiz(
            db, student_id=current_user_context.user.id, quiz_id=quiz_id
        )

        in_progress = [a for a in existing_attempts if a.status == QuizAttemptStatusEnum.IN_PROGRESS]
        if in_progress:
            return in_progress[0]

        if quiz.max_attempts is not None and len(existing_attempts) >= quiz.max_attempts:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Maximum number of attempts ({quiz.max_attempts}) reached for this quiz."
            )

        attempt_in = QuizAttemptCreate(quiz_id=quiz_id, student_id=current_user_context.user.id, answers={})
        return crud_quiz_attempt.create(db, obj_in=attempt_in)

    def save_answers(self, db: Session, *, attempt_id: int, answers: Dict[str, Any],
                     current_user_context: UserContext) -> QuizAttempt:
        attempt = self._get_attempt(db, attempt_id)
        self._require_attempt_ownership_and_in_progress(current_user_context, attempt)
        self._validate_answer_keys(db, attempt, answers)

        # JSON columns only track reassignment, not in-place mutation
        merged = dict(attempt.answers or {})
        merged.update({str(key): value for key, value in answers.items()})
        return crud_quiz_attempt.update(db, db_obj=attempt, obj_in={"answers": merged})

    def submit_attempt(self, db: Session, *, attempt_id: int, current_user_context: UserContext,
                       answers: Optional[Dict[str, Any]] = None) -> QuizAttempt:
        attempt = self._get_attempt(db, attempt_id)
        self._require_attempt_ownership_and_in_progress(current_user_context, attempt)

        final_answers = dict(attempt.answers or {})
        if answers:
            self._validate_answer_keys(db, attempt, answers)
            final_answers.update({str(key): value for key, value in answers.items()})

        crud_quiz_attempt.mark_submitted(
            db, db_obj=attempt, answers=final_answers, submitted_at=datetime.now(timezone.utc)
        )
        scoring_service.recalculate_score(db, attempt_id)

        db.refresh(attempt)
        return attempt

    def get_attempt(self, db: Session, *, attempt_id: int, current_user_context: UserContext) -> QuizAttemptDetails:
        attempt = self._get_attempt(db, attempt_id)
        self._require_attempt_view_permission(db, current_user_context, attempt)

        questions = crud_question.get_by_quiz(db, quiz_id=attempt.quiz_id)
        return QuizAttemptDetails(
            attempt=QuizAttemptSchema.model_validate(attempt),
            questions=[QuestionSchema.model_validate(q) for q in questions],
            max_score=sum(q.points for q in questions),
        )

    def get_attempts_by_quiz(self, db: Session, *, quiz_id: int, current_user_context: UserContext,
                             skip: int = 0, limit: int = 100) -> List[QuizAttempt]:
        quiz = self._get_quiz(db, quiz_id)

        if permission_helper.is_student(current_user_context):
            return crud_quiz_attempt.get_by_student_and_quiz(
                db, student_id=current_user_context.user.id, quiz_id=quiz_id
            )

        permission_helper.require_course_management_permission(current_user_context, quiz.course)
        return crud_quiz_attempt.get_all_by_quiz(db, quiz_id=quiz_id, skip=skip, limit=limit)


quiz_attempt_service = QuizAttemptService()
