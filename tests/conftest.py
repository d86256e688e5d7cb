import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import uuid
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from app.core.database import Base, get_db
from app.core.constants import QuestionTypeEnum, QuizAttemptStatusEnum, RoleEnum
from app.core.security import create_access_token
from app.crud.course import course as crud_course
from app.crud.question import question as crud_question
from app.crud.quiz import quiz as crud_quiz
from app.crud.quiz_attempt import quiz_attempt as crud_quiz_attempt
from app.crud.user import user as crud_user
from app.models import course, user, quiz, question, quiz_attempt, question_grade  # noqa: F401
from app.schemas.user import User as UserSchema, UserContext
from app.utils import deps as deps_utils
import main


@pytest.fixture(scope="function")
def database_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture(scope="function")
def session_factory(database_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=database_engine)

@pytest.fixture(scope="function")
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture(scope="function")
def client(db_session):
    main.app.dependency_overrides[get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def user_factory(db_session):
    def _user_factory(role: RoleEnum = RoleEnum.STUDENT, is_active: bool = True):
        return crud_user.create(db_session, obj_in={
            "full_name": f"Test {role.value}",
            "email": f"{role.value}-{uuid.uuid4().hex[:8]}@test.com",
            "role": role,
            "is_active": is_active,
        })
    return _user_factory

@pytest.fixture
def auth_headers():
    def _auth_headers(test_user):
        return {"Authorization": f"Bearer {create_access_token(test_user.id)}"}
    return _auth_headers

@pytest.fixture
def context_for():
    def _context_for(test_user):
        return UserContext(user=UserSchema.model_validate(test_user), role=test_user.role)
    return _context_for


@pytest.fixture
def grading_setup(db_session, user_factory):
    """A course with one teacher, one enrolled student and a published quiz.

    Questions: mc (multiple_choice, 10 pts, "B"), essay (15 pts),
    tf (true_false, 5 pts, True), short (short_answer, 5 pts).
    """
    teacher = user_factory(RoleEnum.TEACHER)
    student = user_factory(RoleEnum.STUDENT)
    test_course = crud_course.create(db_session, obj_in={"title": f"Course {uuid.uuid4().hex[:6]}"})
    crud_course.add_teacher(db_session, course=test_course, teacher=teacher)
    crud_course.add_student(db_session, course=test_course, student=student)

    test_quiz = crud_quiz.create(db_session, obj_in={"course_id": test_course.id, "title": "Unit 1 Quiz"})
    mc = crud_question.create(db_session, obj_in={
        "quiz_id": test_quiz.id, "question_text": "Pick B", "question_type": QuestionTypeEnum.MULTIPLE_CHOICE,
        "options": ["A", "B", "C"], "correct_answer": "B", "points": 10, "order_index": 0,
    })
    essay = crud_question.create(db_session, obj_in={
        "quiz_id": test_quiz.id, "question_text": "Discuss", "question_type": QuestionTypeEnum.ESSAY,
        "points": 15, "order_index": 1,
    })
    tf = crud_question.create(db_session, obj_in={
        "quiz_id": test_quiz.id, "question_text": "True?", "question_type": QuestionTypeEnum.TRUE_FALSE,
        "options": ["true", "false"], "correct_answer": True, "points": 5, "order_index": 2,
    })
    short = crud_question.create(db_session, obj_in={
        "quiz_id": test_quiz.id, "question_text": "Define", "question_type": QuestionTypeEnum.SHORT_ANSWER,
        "points": 5, "order_index": 3,
    })
    return SimpleNamespace(
        teacher=teacher, student=student, course=test_course, quiz=test_quiz,
        mc=mc, essay=essay, tf=tf, short=short,
    )

@pytest.fixture
def attempt_factory(db_session):
    def _attempt_factory(quiz_id: int, student_id: int, answers=None,
                         status: QuizAttemptStatusEnum = QuizAttemptStatusEnum.SUBMITTED):
        return crud_quiz_attempt.create(db_session, obj_in={
            "quiz_id": quiz_id,
            "student_id": student_id,
            "answers": answers or {},
            "status": status,
        })
    return _attempt_factory
