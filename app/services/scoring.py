"""Quiz attempt scoring and manual-grading reconciliation.

An attempt's score is always a full recomputation from three inputs: the
quiz's questions, the answers stored on the attempt, and the manual grades on
file for the attempt. Nothing is accumulated incrementally, so recomputing is
idempotent and grading questions in any order converges on the same total.
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import GradedStatusPolicyEnum, QuizAttemptStatusEnum
from app.core.database import SessionLocal
from app.core.exceptions import (
    DataInconsistencyError,
    InvalidGradeError,
    NotFoundError,
    PersistenceFailureError,
    ScoringError,
)
from app.crud.question import question as crud_question
from app.crud.question_grade import question_grade as crud_question_grade
from app.crud.quiz import quiz as crud_quiz
from app.crud.quiz_attempt import quiz_attempt as crud_quiz_attempt
from app.models.question import Question
from app.models.question_grade import QuestionGrade as QuestionGradeModel
from app.models.quiz_attempt import QuizAttempt
from app.schemas.question_grade import (
    AttemptScore,
    BulkRecalculationResult,
    GradeResult,
    GradingBreakdown,
    QuestionAward,
    QuestionGrade,
    QuestionGradeUpsert,
    ScoreBreakdown,
)
from app.schemas.user import UserContext
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)


def answers_match(submitted: Any, correct: Any) -> bool:
    # bool is an int subclass; True must not match 1
    if isinstance(submitted, bool) != isinstance(correct, bool):
        return False
    return submitted == correct


def compute_attempt_score(
    questions: Iterable[Question],
    answers: Optional[Dict[str, Any]],
    grades: Iterable[QuestionGradeModel],
) -> ScoreBreakdown:
    """Scores one attempt.

    Auto-graded questions earn their full points when the submitted answer
    equals the correct answer exactly, nothing otherwise. Manually graded
    questions earn the points of their grade, or zero while ungraded.

    Raises DataInconsistencyError when an answer refers to a question that is
    not part of the quiz.
    """
    questions = list(questions)
    answers = answers or {}
    question_keys = {str(q.id) for q in questions}

    unknown = sorted(str(key) for key in answers if str(key) not in question_keys)
    if unknown:
        raise DataInconsistencyError(
            f"Submitted answers reference questions that are not part of the quiz: {', '.join(unknown)}",
            details={"question_ids": unknown},
        )

    grades_by_question = {g.question_id: g for g in grades}
    awards: Dict[int, float] = {}
    manual_questions = 0
    graded_manual_questions = 0

    for question in questions:
        key = str(question.id)
        if question.is_auto_graded:
            is_correct = key in answers and answers_match(answers[key], question.correct_answer)
            awards[question.id] = float(question.points) if is_correct else 0.0
        else:
            manual_questions += 1
            grade = grades_by_question.get(question.id)
            if grade is not None:
                graded_manual_questions += 1
                awards[question.id] = float(grade.points_awarded)
            else:
                awards[question.id] = 0.0

    return ScoreBreakdown(
        total=sum(awards.values()),
        max_score=sum(q.points for q in questions),
        awards=awards,
        manual_questions=manual_questions,
        graded_manual_questions=graded_manual_questions,
    )


def resolve_status(
    current: QuizAttemptStatusEnum,
    breakdown: ScoreBreakdown,
    policy: GradedStatusPolicyEnum,
) -> QuizAttemptStatusEnum:
    # Only a submitted attempt can become graded
    if current != QuizAttemptStatusEnum.SUBMITTED:
        return current

    if breakdown.manual_questions == 0:
        return QuizAttemptStatusEnum.GRADED

    if policy == GradedStatusPolicyEnum.ALL:
        fully_graded = breakdown.graded_manual_questions == breakdown.manual_questions
    else:
        fully_graded = breakdown.graded_manual_questions > 0

    return QuizAttemptStatusEnum.GRADED if fully_graded else current


class ScoringService:

    def __init__(self, policy: Optional[GradedStatusPolicyEnum] = None):
        self._policy = policy

    @property
    def policy(self) -> GradedStatusPolicyEnum:
        return self._policy or GradedStatusPolicyEnum(settings.GRADED_STATUS_POLICY)

    def _get_attempt(self, db: Session, attempt_id: int) -> QuizAttempt:
        attempt = crud_quiz_attempt.get(db, id=attempt_id)
        if not attempt:
            raise NotFoundError(f"Quiz attempt {attempt_id} not found.")
        return attempt

    def _validate_grade(self, attempt: QuizAttempt, question: Question, points_awarded: float):
        if attempt.status == QuizAttemptStatusEnum.IN_PROGRESS:
            raise InvalidGradeError(f"Attempt {attempt.id} has not been submitted yet.")
        if question.quiz_id != attempt.quiz_id:
            raise InvalidGradeError(
                f"Question {question.id} does not belong to the quiz of attempt {attempt.id}."
            )
        if not question.is_manually_graded:
            raise InvalidGradeError(
                f"Question {question.id} is {question.question_type.value} and is graded automatically."
            )
        if not math.isfinite(points_awarded) or points_awarded < 0 or points_awarded > question.points:
            raise InvalidGradeError(
                f"Points awarded ({points_awarded}) must be between 0 and {question.points}.",
                details={"min": 0, "max": question.points},
            )

    def _save_grade_and_recompute(self, db: Session, grade_in: QuestionGradeUpsert) -> AttemptScore:
        # Grade and score share one transaction; _recompute commits or rolls back both
        try:
            crud_question_grade.upsert(db, obj_in=grade_in, commit=False)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                f"Failed to save grade for attempt {grade_in.attempt_id}, question {grade_in.question_id}: {exc}"
            )
            raise PersistenceFailureError(f"Failed to save grade: {exc.__class__.__name__}") from exc

        return self._recompute(db, grade_in.attempt_id)

    def grade_question(
        self,
        db: Session,
        *,
        attempt_id: int,
        question_id: int,
        points_awarded: float,
        feedback: Optional[str],
        current_user_context: UserContext,
    ) -> GradeResult:
        attempt = self.authorize_grader(db, attempt_id=attempt_id, current_user_context=current_user_context)

        question = crud_question.get(db, id=question_id)
        if not question:
            raise NotFoundError(f"Question {question_id} not found.")

        self._validate_grade(attempt, question, points_awarded)

        grade_in = QuestionGradeUpsert(
            attempt_id=attempt.id,
            question_id=question.id,
            points_awarded=points_awarded,
            feedback=feedback,
            graded_by=current_user_context.user.id,
            graded_at=datetime.now(timezone.utc),
        )
        try:
            result = self._save_grade_and_recompute(db, grade_in)
        except PersistenceFailureError as exc:
            logger.warning(f"Retrying grade of question {question_id} on attempt {attempt_id} after: {exc.detail}")
            result = self._save_grade_and_recompute(db, grade_in)

        logger.info(
            f"Question {question_id} on attempt {attempt_id} graded {points_awarded}/{question.points} "
            f"by user {current_user_context.user.id}"
        )

        grade = crud_question_grade.get_by_attempt_and_question(db, attempt_id=attempt_id, question_id=question_id)
        return GradeResult(grade=QuestionGrade.model_validate(grade), attempt=result)

    def _recompute(self, db: Session, attempt_id: int) -> AttemptScore:
        try:
            attempt = crud_quiz_attempt.get_for_update(db, id=attempt_id)
            if not attempt:
                db.rollback()
                raise NotFoundError(f"Quiz attempt {attempt_id} not found.")

            questions = crud_question.get_by_quiz(db, quiz_id=attempt.quiz_id)
            grades = crud_question_grade.get_all_by_attempt(db, attempt_id=attempt.id)

            try:
                breakdown = compute_attempt_score(questions, attempt.answers, grades)
            except DataInconsistencyError as exc:
                db.rollback()
                logger.error(f"Attempt {attempt_id} is inconsistent with its quiz: {exc.detail}")
                raise

            previous_score = attempt.score
            previous_status = attempt.status
            status = resolve_status(previous_status, breakdown, self.policy)

            graded_at = attempt.graded_at
            if status == QuizAttemptStatusEnum.GRADED and (
                previous_status != QuizAttemptStatusEnum.GRADED or previous_score != breakdown.total
            ):
                graded_at = datetime.now(timezone.utc)

            crud_quiz_attempt.write_score(
                db, db_obj=attempt, score=breakdown.total, status=status, graded_at=graded_at
            )
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Failed to persist score for attempt {attempt_id}: {exc}")
            raise PersistenceFailureError(
                f"Failed to persist score for attempt {attempt_id}: {exc.__class__.__name__}"
            ) from exc

        if previous_score != breakdown.total or previous_status != status:
            logger.info(
                f"Attempt {attempt_id} rescored: {previous_score} -> {breakdown.total} "
                f"({previous_status.value} -> {status.value})"
            )

        return AttemptScore(
            attempt_id=attempt_id,
            score=breakdown.total,
            max_score=breakdown.max_score,
            status=status,
            manual_questions=breakdown.manual_questions,
            graded_manual_questions=breakdown.graded_manual_questions,
        )

    def recalculate_score(self, db: Session, attempt_id: int) -> AttemptScore:
        try:
            return self._recompute(db, attempt_id)
        except PersistenceFailureError as exc:
            logger.warning(f"Retrying score recalculation for attempt {attempt_id} after: {exc.detail}")
            return self._recompute(db, attempt_id)

    def _recalculate_in_own_session(self, session_factory: Callable[[], Session], attempt_id: int) -> AttemptScore:
        db = session_factory()
        try:
            return self._recompute(db, attempt_id)
        finally:
            db.close()

    def recalculate_all_scores(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        max_workers: Optional[int] = None,
    ) -> BulkRecalculationResult:
        """Recomputes every attempt, one session per attempt.

        A failing attempt is logged and reported in ``failed``; it never stops
        the others and is not retried.
        """
        db = session_factory()
        try:
            attempt_ids = crud_quiz_attempt.get_all_ids(db)
        finally:
            db.close()

        workers = max_workers or settings.SCORING_BULK_MAX_WORKERS
        logger.info(f"Recalculating scores for {len(attempt_ids)} attempts with {workers} workers")

        updated = 0
        failed: List[int] = []
        if not attempt_ids:
            return BulkRecalculationResult(updated=0, failed=[])

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="score-recalc") as executor:
            futures = {
                executor.submit(self._recalculate_in_own_session, session_factory, attempt_id): attempt_id
                for attempt_id in attempt_ids
            }
            for future in as_completed(futures):
                attempt_id = futures[future]
                try:
                    future.result()
                    updated += 1
                except ScoringError as exc:
                    logger.warning(f"Skipping attempt {attempt_id}: {exc.error_code} {exc.detail}")
                    failed.append(attempt_id)
                except Exception:
                    logger.exception(f"Unexpected error recalculating attempt {attempt_id}")
                    failed.append(attempt_id)

        failed.sort()
        logger.info(f"Score recalculation complete: {updated} updated, {len(failed)} failed")
        return BulkRecalculationResult(updated=updated, failed=failed)

    def authorize_grader(self, db: Session, *, attempt_id: int, current_user_context: UserContext) -> QuizAttempt:
        attempt = self._get_attempt(db, attempt_id)
        quiz = crud_quiz.get(db, id=attempt.quiz_id)
        if not quiz:
            raise NotFoundError(f"Quiz {attempt.quiz_id} not found for attempt {attempt_id}.")

        permission_helper.require_grading_permission(current_user_context, quiz.course)
        return attempt

    def get_grading_breakdown(self, db: Session, *, attempt_id: int, current_user_context: UserContext) -> GradingBreakdown:
        attempt = self.authorize_grader(db, attempt_id=attempt_id, current_user_context=current_user_context)

        questions = crud_question.get_by_quiz(db, quiz_id=attempt.quiz_id)
        grades = crud_question_grade.get_all_by_attempt(db, attempt_id=attempt.id)
        breakdown = compute_attempt_score(questions, attempt.answers, grades)
        grades_by_question = {g.question_id: g for g in grades}
        answers = attempt.answers or {}

        items = []
        for question in questions:
            grade = grades_by_question.get(question.id) if question.is_manually_graded else None
            items.append(QuestionAward(
                question_id=question.id,
                question_text=question.question_text,
                question_type=question.question_type,
                max_points=question.points,
                submitted_answer=answers.get(str(question.id)),
                correct_answer=question.correct_answer,
                points_awarded=breakdown.awards[question.id],
                needs_manual_grading=question.is_manually_graded and grade is None,
                grade=QuestionGrade.model_validate(grade) if grade else None,
            ))

        return GradingBreakdown(
            attempt_id=attempt.id,
            score=attempt.score,
            status=attempt.status,
            max_score=breakdown.max_score,
            questions=items,
        )


scoring_service = ScoringService()
