from typing import List, Optional
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from app.core.constants import QUIZ_GRADED_EVENT
from app.schemas.response import APIResponse
from app.utils import deps
from app.core.database import get_db
from app.schemas.quiz import Quiz, QuizCreate
from app.schemas.question import Question, QuestionCreate, QuestionWithCorrectAnswer
from app.schemas.quiz_attempt import QuizAttempt, QuizAttemptDetails, AnswersUpdate
from app.schemas.question_grade import AttemptScore, GradeResult, GradingBreakdown, QuestionGradeIn
from app.schemas.user import UserContext
from app.services.quiz import quiz_service
from app.services.quiz_attempt import quiz_attempt_service
from app.services.scoring import scoring_service
from app.utils.events import event_bus

router = APIRouter()

@router.post("/", response_model=APIResponse[Quiz], status_code=status.HTTP_201_CREATED)
async def create_quiz(
    *,
    db: Session = Depends(deps.get_transactional_db),
    quiz_in: QuizCreate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    new_quiz = quiz_service.create_quiz(db, quiz_in=quiz_in, current_user_context=context)
    return APIResponse(message="Quiz created successfully", data=Quiz.model_validate(new_quiz))


@router.get("/{quiz_id}", response_model=APIResponse[Quiz])
async def get_quiz(
    *,
    db: Session = Depends(get_db),
    quiz_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    quiz = quiz_service.get_quiz(db, quiz_id=quiz_id, current_user_context=context)
    return APIResponse(message="Quiz retrieved successfully", data=Quiz.model_validate(quiz))


@router.post("/{quiz_id}/questions", response_model=APIResponse[List[QuestionWithCorrectAnswer]], status_code=status.HTTP_201_CREATED)
async def add_questions(
    *,
    db: Session = Depends(deps.get_transactional_db),
    quiz_id: int,
    questions_in: List[QuestionCreate],
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    questions = quiz_service.add_questions(db, quiz_id=quiz_id, questions_in=questions_in, current_user_context=context)
    return APIResponse(
        message="Questions created successfully",
        data=[QuestionWithCorrectAnswer.model_validate(q) for q in questions]
    )


@router.get("/{quiz_id}/questions", response_model=APIResponse[List[QuestionWithCorrectAnswer]])
async def get_quiz_questions(
    *,
    db: Session = Depends(get_db),
    quiz_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    questions = quiz_service.get_quiz_questions(db, quiz_id=quiz_id, current_user_context=context)
    if quiz_service.can_see_correct_answers(db, quiz_id=quiz_id, current_user_context=context):
        data = [QuestionWithCorrectAnswer.model_validate(q) for q in questions]
    else:
        data = [Question.model_validate(q) for q in questions]
    return APIResponse(message="Quiz questions retrieved successfully", data=data)


# Quiz Attempt Endpoints
@router.post("/{quiz_id}/attempts", response_model=APIResponse[QuizAttempt], status_code=status.HTTP_201_CREATED)
async def start_attempt(
    *,
    db: Session = Depends(deps.get_transactional_db),
    quiz_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    attempt = quiz_attempt_service.start_attempt(db, quiz_id=quiz_id, current_user_context=context)
    return APIResponse(message="Quiz attempt started successfully", data=QuizAttempt.model_validate(attempt))


@router.get("/{quiz_id}/attempts", response_model=APIResponse[List[QuizAttempt]])
async def get_quiz_attempts(
    *,
    db: Session = Depends(get_db),
    quiz_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context),
    skip: int = 0,
    limit: int = 100
):
    attempts = quiz_attempt_service.get_attempts_by_quiz(
        db, quiz_id=quiz_id, current_user_context=context, skip=skip, limit=limit
    )
    return APIResponse(message="Quiz attempts retrieved successfully", data=[QuizAttempt.model_validate(a) for a in attempts])


@router.put("/attempts/{attempt_id}/answers", response_model=APIResponse[QuizAttempt])
async def save_answers(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    answers_in: AnswersUpdate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    attempt = quiz_attempt_service.save_answers(
        db, attempt_id=attempt_id, answers=answers_in.answers, current_user_context=context
    )
    return APIResponse(message="Answers saved successfully", data=QuizAttempt.model_validate(attempt))


@router.post("/attempts/{attempt_id}/submit", response_model=APIResponse[QuizAttempt])
async def submit_attempt(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    answers_in: Optional[AnswersUpdate] = Body(None),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    attempt = quiz_attempt_service.submit_attempt(
        db,
        attempt_id=attempt_id,
        current_user_context=context,
        answers=answers_in.answers if answers_in else None
    )
    return APIResponse(message="Quiz submitted successfully", data=QuizAttempt.model_validate(attempt))


@router.get("/attempts/{attempt_id}", response_model=APIResponse[QuizAttemptDetails])
async def get_attempt(
    *,
    db: Session = Depends(get_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    details = quiz_attempt_service.get_attempt(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Quiz attempt retrieved successfully", data=details)


# Grading Endpoints
@router.get("/attempts/{attempt_id}/grading", response_model=APIResponse[GradingBreakdown])
async def get_grading_breakdown(
    *,
    db: Session = Depends(get_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    breakdown = scoring_service.get_grading_breakdown(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Grading breakdown retrieved successfully", data=breakdown)


@router.put("/attempts/{attempt_id}/grades/{question_id}", response_model=APIResponse[GradeResult])
async def grade_question(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    question_id: int,
    grade_in: QuestionGradeIn,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    result = scoring_service.grade_question(
        db,
        attempt_id=attempt_id,
        question_id=question_id,
        points_awarded=grade_in.points_awarded,
        feedback=grade_in.feedback,
        current_user_context=context
    )
    await event_bus.publish(QUIZ_GRADED_EVENT, {
        "attempt_id": attempt_id,
        "question_id": question_id,
        "score": result.attempt.score,
        "max_score": result.attempt.max_score,
        "status": result.attempt.status.value,
        "graded_by": context.user.id
    })
    return APIResponse(message="Question graded successfully", data=result)


@router.post("/attempts/{attempt_id}/recalculate", response_model=APIResponse[AttemptScore])
async def recalculate_score(
    *,
    db: Session = Depends(deps.get_transactional_db),
    attempt_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    scoring_service.authorize_grader(db, attempt_id=attempt_id, current_user_context=context)
    score = scoring_service.recalculate_score(db, attempt_id)
    return APIResponse(message="Score recalculated successfully", data=score)
