from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import QuizAttemptStatusEnum, RoleEnum
from app.crud.course import course as crud_course
from app.crud.question_grade import question_grade as crud_question_grade
from app.crud.quiz_attempt import quiz_attempt as crud_quiz_attempt


class TestQuizEndpoints:
    def test_create_quiz_as_teacher(self, client: TestClient, grading_setup, auth_headers):
        response = client.post(
            "/quizzes/",
            headers=auth_headers(grading_setup.teacher),
            json={"course_id": grading_setup.course.id, "title": "Midterm", "max_attempts": 2}
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["title"] == "Midterm"
        assert data["total_points"] == 0

    def test_create_quiz_forbidden_for_student(self, client: TestClient, grading_setup, auth_headers):
        response = client.post(
            "/quizzes/",
            headers=auth_headers(grading_setup.student),
            json={"course_id": grading_setup.course.id, "title": "Midterm"}
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_requests_without_token_are_rejected(self, client: TestClient, grading_setup):
        response = client.get(f"/quizzes/{grading_setup.quiz.id}")
        assert response.status_code in (401, 403)

    def test_request_id_is_echoed_in_errors(self, client: TestClient, grading_setup, auth_headers):
        headers = {**auth_headers(grading_setup.teacher), "X-Request-ID": "grading-trace-1"}
        response = client.get("/quizzes/9999", headers=headers)
        assert response.status_code == 404
        assert response.headers["X-Request-ID"] == "grading-trace-1"
        assert response.json()["request_id"] == "grading-trace-1"

    def test_auto_graded_question_requires_correct_answer(self, client: TestClient, grading_setup, auth_headers):
        response = client.post(
            f"/quizzes/{grading_setup.quiz.id}/questions",
            headers=auth_headers(grading_setup.teacher),
            json=[{"question_text": "Pick one", "question_type": "multiple_choice", "options": ["A", "B"], "points": 2}]
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_students_do_not_see_correct_answers(self, client: TestClient, grading_setup, auth_headers):
        student_view = client.get(f"/quizzes/{grading_setup.quiz.id}/questions", headers=auth_headers(grading_setup.student))
        teacher_view = client.get(f"/quizzes/{grading_setup.quiz.id}/questions", headers=auth_headers(grading_setup.teacher))
        assert student_view.status_code == 200
        assert teacher_view.status_code == 200

        assert all(q.get("correct_answer") is None for q in student_view.json()["data"])
        teacher_answers = {q["id"]: q["correct_answer"] for q in teacher_view.json()["data"]}
        assert teacher_answers[grading_setup.mc.id] == "B"
        assert teacher_answers[grading_setup.tf.id] is True

    def test_questions_are_locked_once_attempted(self, client: TestClient, grading_setup, attempt_factory, auth_headers):
        attempt_factory(grading_setup.quiz.id, grading_setup.student.id)
        response = client.post(
            f"/quizzes/{grading_setup.quiz.id}/questions",
            headers=auth_headers(grading_setup.teacher),
            json=[{"question_text": "Late addition", "question_type": "essay", "points": 5}]
        )
        assert response.status_code == 409


class TestGradingEndpoints:
    def test_grade_question(self, client: TestClient, db_session: Session, grading_setup, attempt_factory, auth_headers):
        attempt = attempt_factory(grading_setup.quiz.id, grading_setup.student.id, answers={
            str(grading_setup.mc.id): "B",
        })
        response = client.put(
            f"/quizzes/attempts/{attempt.id}/grades/{grading_setup.essay.id}",
            headers=auth_headers(grading_setup.teacher),
            json={"points_awarded": 12, "feedback": "Well argued"}
        )
        assert response.status_code == 200, response.text
        data = response.json()["data"]
        assert data["grade"]["points_awarded"] == 12
        assert data["grade"]["feedback"] == "Well argued"
        assert data["attempt"]["score"] == 22
        assert data["attempt"]["max_score"] == 35
        assert data["attempt"]["status"] == "graded"

    def test_invalid_grade_reports_error_code(self, client: TestClient, db_session: Session, grading_setup,
                                              attempt_factory, auth_headers):
        attempt = attempt_factory(grading_setup.quiz.id, grading_setup.student.id)
        response = client.put(
            f"/quizzes/attempts/{attempt.id}/grades/{grading_setup.essay.id}",
            headers=auth_headers(grading_setup.teacher),
            json={"points_awarded": 16}
        )
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "INVALID_GRADE"
        assert error["details"] == {"min": 0, "max": 15}
        assert crud_question_grade.get_all_by_attempt(db_session, attempt_id=attempt.id) == []

    def test_grading_auto_question_is_rejected(self, client: TestClient, grading_setup, attempt_factory, auth_headers):
        attempt = attempt_factory(grading_setup.quiz.id, grading_setup.student.id)
        response = client.put(
            f"/quizzes/attempts/{attempt.id}/grades/{grading_setup.tf.id}",
            headers=auth_headers(grading_setup.teacher),
            json={"points_awarded": 5}
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_GRADE"

    def test_grade_unknown_attempt(self, client: TestClient, grading_setup, auth_headers):
        response = client.put(
            f"/quizzes/attempts/9999/grades/{grading_setup.essay.id}",
            headers=auth_headers(grading_setup.teacher),
            json={"points_awarded": 1}
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_grade_forbidden_for_teacher_outside_course(self, client: TestClient, grading_setup, attempt_factory,
                                                        user_factory, auth_headers):
        outsider = user_factory(RoleEnum.TEACHER)
        attempt = attempt_factory(grading_setup.quiz.id, grading_setup.student.id)
        response = client.put(
            f"/quizzes/attempts/{attempt.id}/grades/{grading_setup.essay.id}",
            headers=auth_headers(outsider),
            json={"points_awarded": 1}
        )
        assert response.status_code == 403

    def test_outsider_gets_forbidden_for_unknown_question(self, client: TestClient, grading_setup, attempt_factory,
                                                           user_factory, auth_headers):
        outsider = user_factory(RoleEnum.TEACHER)
        attempt = attempt_factory(grading_setup.quiz.id, grading_setup.student.id)
        response = client.put(
            f"/quizzes/attempts/{attempt.id}/grades/9999",
            headers=auth_headers(outsider),
            json={"points_awarded": 1}
        )
        assert response.status_code == 403

    def test_in_progress_attempt_cannot_be_graded(self, client: TestClient, db_session: Session, grading_setup,
                                                  attempt_factory, auth_headers):
        attempt = attempt_factory(
            grading_setup.quiz.id, grading_setup.student.id, status=QuizAttemptStatusEnum.IN_PROGRESS
        )
        response = client.put(
            f"/quizzes/attempts/{attempt.id}/grades/{grading_setup.essay.id}",
            headers=auth_headers(grading_setup.teacher),
            json={"points_awarded": 10}
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_GRADE"

        r_submit = client.post(f"/quizzes/attempts/{attempt.id}/submit", headers=auth_headers(grading_setup.student))
        assert r_submit.status_code == 200, r_submit.text
        assert r_submit.json()["data"]["status"] == "submitted"
        assert crud_question_grade.get_all_by_attempt(db_session, attempt_id=attempt.id) == []

    def test_recalculate_score(self, client: TestClient, grading_setup, attempt_factory, auth_headers):
        attempt = attempt_factory(grading_setup.quiz.id, grading_setup.student.id, answers={
            str(grading_setup.mc.id): "B", str(grading_setup.tf.id): False,
        })
        response = client.post(
            f"/quizzes/attempts/{attempt.id}/recalculate",
            headers=auth_headers(grading_setup.teacher)
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["score"] == 10
        assert data["status"] == "submitted"
        assert data["manual_questions"] == 2
        assert data["graded_manual_questions"] == 0

    def test_recalculate_forbidden_for_student(self, client: TestClient, grading_setup, attempt_factory, auth_headers):
        attempt = attempt_factory(grading_setup.quiz.id, grading_setup.student.id)
        response = client.post(
            f"/quizzes/attempts/{attempt.id}/recalculate",
            headers=auth_headers(grading_setup.student)
        )
        assert response.status_code == 403

    def test_recalculate_inconsistent_attempt(self, client: TestClient, grading_setup, attempt_factory, auth_headers):
        attempt = attempt_factory(grading_setup.quiz.id, grading_setup.student.id, answers={"99999": "orphan"})
        response = client.post(
            f"/quizzes/attempts/{attempt.id}/recalculate",
            headers=auth_headers(grading_setup.teacher)
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "DATA_INCONSISTENCY"

    def test_grading_breakdown(self, client: TestClient, grading_setup, attempt_factory, auth_headers):
        attempt = attempt_factory(grading_setup.quiz.id, grading_setup.student.id, answers={
            str(grading_setup.mc.id): "C", str(grading_setup.essay.id): "My essay",
        })
        client.put(
            f"/quizzes/attempts/{attempt.id}/grades/{grading_setup.essay.id}",
            headers=auth_headers(grading_setup.teacher),
            json={"points_awarded": 9}
        )
        response = client.get(f"/quizzes/attempts/{attempt.id}/grading", headers=auth_headers(grading_setup.teacher))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["score"] == 9
        assert data["max_score"] == 35

        items = {item["question_id"]: item for item in data["questions"]}
        assert items[grading_setup.mc.id]["points_awarded"] == 0
        assert items[grading_setup.mc.id]["submitted_answer"] == "C"
        assert items[grading_setup.essay.id]["grade"]["points_awarded"] == 9
        assert items[grading_setup.essay.id]["needs_manual_grading"] is False
        assert items[grading_setup.short.id]["needs_manual_grading"] is True


class TestAdminEndpoints:
    def test_recalculate_all_scores(self, client: TestClient, db_session: Session, grading_setup,
                                    attempt_factory, user_factory, auth_headers):
        admin = user_factory(RoleEnum.SUPER_ADMIN)
        good = attempt_factory(grading_setup.quiz.id, grading_setup.student.id, answers={str(grading_setup.mc.id): "B"})
        broken = attempt_factory(grading_setup.quiz.id, grading_setup.student.id, answers={"99999": "orphan"})

        response = client.post("/admin/recalculate-scores", headers=auth_headers(admin))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["updated"] == 1
        assert data["failed"] == [broken.id]

        db_session.expire_all()
        stored = crud_quiz_attempt.get(db_session, id=good.id)
        assert stored.score == 10
        assert stored.status == QuizAttemptStatusEnum.SUBMITTED

    def test_recalculate_all_scores_requires_super_admin(self, client: TestClient, grading_setup, auth_headers):
        response = client.post("/admin/recalculate-scores", headers=auth_headers(grading_setup.teacher))
        assert response.status_code == 403
