from typing import List
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from app.crud.course import course as crud_course
from app.crud.quiz import quiz as crud_quiz
from app.crud.question import question as crud_question
from app.crud.quiz_attempt import quiz_attempt as crud_quiz_attempt
from app.models.question import Question
from app.models.quiz import Quiz
from app.schemas.quiz import QuizCreate
from app.schemas.question import QuestionCreate
from app.schemas.user import UserContext
from app.utils.permission import PermissionHelper as permission_helper


class QuizService:

    def _get_quiz(self, db: Session, quiz_id: int) -> Quiz:
        quiz = crud_quiz.get(db, id=quiz_id)
        if not quiz:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found.")
        return quiz

    def create_quiz(self, db: Session, *, quiz_in: QuizCreate, current_user_context: UserContext) -> Quiz:
        course = crud_course.get(db, id=quiz_in.course_id)
        if not course:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found.")

        permission_helper.require_course_management_permission(current_user_context, course)
        return crud_quiz.create(db, obj_in=quiz_in)

    def get_quiz(self, db: Session, *, quiz_id: int, current_user_context: UserContext) -> Quiz:
        quiz = self._get_quiz(db, quiz_id)
        if not permission_helper.can_view_course(current_user_context, quiz.course):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to view this quiz."
            )
        return quiz

    def add_questions(self, db: Session, *, quiz_id: int, questions_in: List[QuestionCreate],
                      current_user_context: UserContext) -> List[Question]:
        if not questions_in:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No questions provided.")

        quiz = self._get_quiz(db, quiz_id)
        permission_helper.require_course_management_permission(current_user_context, quiz.course)

        # Question set is frozen once attempts exist
        if crud_quiz_attempt.count_by_quiz(db, quiz_id=quiz.id) > 0:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Questions cannot be changed once students have attempted the quiz."
            )

        created = []
        for question_in in questions_in:
            data = question_in.model_dump()
            data["quiz_id"] = quiz.id
            created.append(crud_question.create(db, obj_in=data, commit=False))
        db.commit()
        for question in created:
            db.refresh(question)
        return created

    def get_quiz_questions(self, db: Session, *, quiz_id: int, current_user_context: UserContext) -> List[Question]:
        quiz = self.get_quiz(db, quiz_id=quiz_id, current_user_context=current_user_context)
        return crud_question.get_by_quiz(db, quiz_id=quiz.id)

    def can_see_correct_answers(self, db: Session, *, quiz_id: int, current_user_context: UserContext) -> bool:
        quiz = self._get_quiz(db, quiz_id)
        return permission_helper.can_manage_course(current_user_context, quiz.course)


quiz_service = QuizService()
