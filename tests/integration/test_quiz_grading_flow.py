from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import QUIZ_GRADED_EVENT, RoleEnum
from app.crud.question_grade import question_grade as crud_question_grade
from app.utils.events import event_bus


def test_quiz_grading_flow(client: TestClient, db_session: Session, grading_setup, auth_headers):
    """
    Teacher builds a quiz, student answers and submits it, teacher grades the
    free-text questions and then changes one of the grades.
    """
    print("\n[TEST] Quiz grading flow")
    teacher_headers = auth_headers(grading_setup.teacher)
    student_headers = auth_headers(grading_setup.student)

    print("[1] Creating quiz with two auto-graded and two manual questions")
    r_quiz = client.post(
        "/quizzes/",
        headers=teacher_headers,
        json={"course_id": grading_setup.course.id, "title": "Final Quiz", "max_attempts": 1}
    )
    assert r_quiz.status_code == 201, r_quiz.text
    quiz_id = r_quiz.json()["data"]["id"]

    r_questions = client.post(
        f"/quizzes/{quiz_id}/questions",
        headers=teacher_headers,
        json=[
            {"question_text": "2 + 2?", "question_type": "multiple_choice", "options": ["3", "4"], "correct_answer": "4", "points": 10, "order_index": 0},
            {"question_text": "The sky is blue", "question_type": "true_false", "options": ["true", "false"], "correct_answer": True, "points": 5, "order_index": 1},
            {"question_text": "Explain photosynthesis", "question_type": "essay", "points": 20, "order_index": 2},
            {"question_text": "Name a noble gas", "question_type": "short_answer", "points": 5, "order_index": 3},
        ]
    )
    assert r_questions.status_code == 201, r_questions.text
    mc_id, tf_id, essay_id, short_id = [q["id"] for q in r_questions.json()["data"]]
    print("[OK] Quiz created (40 points total)")

    print("[2] Student starts the attempt and saves answers")
    r_attempt = client.post(f"/quizzes/{quiz_id}/attempts", headers=student_headers)
    assert r_attempt.status_code == 201, r_attempt.text
    attempt_id = r_attempt.json()["data"]["id"]
    assert r_attempt.json()["data"]["status"] == "in_progress"

    r_resume = client.post(f"/quizzes/{quiz_id}/attempts", headers=student_headers)
    assert r_resume.json()["data"]["id"] == attempt_id

    r_save = client.put(
        f"/quizzes/attempts/{attempt_id}/answers",
        headers=student_headers,
        json={"answers": {str(mc_id): "4", str(essay_id): "Plants turn light into sugar"}}
    )
    assert r_save.status_code == 200, r_save.text

    r_bad_save = client.put(
        f"/quizzes/attempts/{attempt_id}/answers",
        headers=student_headers,
        json={"answers": {"99999": "nope"}}
    )
    assert r_bad_save.status_code == 400

    print("[3] Student submits with the remaining answers")
    r_submit = client.post(
        f"/quizzes/attempts/{attempt_id}/submit",
        headers=student_headers,
        json={"answers": {str(tf_id): False, str(short_id): "Neon"}}
    )
    assert r_submit.status_code == 200, r_submit.text
    submitted = r_submit.json()["data"]
    assert submitted["status"] == "submitted"
    assert submitted["score"] == 10
    assert submitted["answers"][str(mc_id)] == "4"
    assert submitted["answers"][str(short_id)] == "Neon"
    print("[OK] Submitted, auto-graded part scored 10")

    r_resubmit = client.post(f"/quizzes/attempts/{attempt_id}/submit", headers=student_headers)
    assert r_resubmit.status_code == 400

    r_second = client.post(f"/quizzes/{quiz_id}/attempts", headers=student_headers)
    assert r_second.status_code == 409

    print("[4] Student cannot grade, teacher grades the essay")
    r_self_grade = client.put(
        f"/quizzes/attempts/{attempt_id}/grades/{essay_id}",
        headers=student_headers,
        json={"points_awarded": 20}
    )
    assert r_self_grade.status_code == 403

    published = []
    event_bus.subscribe(QUIZ_GRADED_EVENT, published.append)
    try:
        r_grade = client.put(
            f"/quizzes/attempts/{attempt_id}/grades/{essay_id}",
            headers=teacher_headers,
            json={"points_awarded": 16, "feedback": "Mention chlorophyll"}
        )
    finally:
        event_bus.unsubscribe(QUIZ_GRADED_EVENT, published.append)
    assert r_grade.status_code == 200, r_grade.text
    assert r_grade.json()["data"]["attempt"]["score"] == 26
    assert r_grade.json()["data"]["attempt"]["status"] == "graded"
    assert published and published[0]["attempt_id"] == attempt_id
    assert published[0]["score"] == 26
    print("[OK] Essay graded, score 26")

    print("[5] Teacher grades the short answer and then lowers the essay grade")
    r_short = client.put(
        f"/quizzes/attempts/{attempt_id}/grades/{short_id}",
        headers=teacher_headers,
        json={"points_awarded": 5}
    )
    assert r_short.json()["data"]["attempt"]["score"] == 31

    r_regrade = client.put(
        f"/quizzes/attempts/{attempt_id}/grades/{essay_id}",
        headers=teacher_headers,
        json={"points_awarded": 12}
    )
    assert r_regrade.status_code == 200
    assert r_regrade.json()["data"]["attempt"]["score"] == 27
    assert len(crud_question_grade.get_all_by_attempt(db_session, attempt_id=attempt_id)) == 2
    print("[OK] Regrade replaced the earlier grade, score 27")

    print("[6] Student views the result")
    r_view = client.get(f"/quizzes/attempts/{attempt_id}", headers=student_headers)
    assert r_view.status_code == 200
    details = r_view.json()["data"]
    assert details["attempt"]["score"] == 27
    assert details["attempt"]["status"] == "graded"
    assert details["attempt"]["graded_at"] is not None
    assert details["max_score"] == 40
    assert all("correct_answer" not in q for q in details["questions"])

    r_breakdown = client.get(f"/quizzes/attempts/{attempt_id}/grading", headers=student_headers)
    assert r_breakdown.status_code == 403
    print("[OK] Flow complete")


def test_teacher_sees_all_attempts_student_sees_own(client: TestClient, grading_setup, attempt_factory,
                                                    user_factory, auth_headers):
    other_student = user_factory(RoleEnum.STUDENT)
    own = attempt_factory(grading_setup.quiz.id, grading_setup.student.id)
    attempt_factory(grading_setup.quiz.id, other_student.id)

    r_teacher = client.get(f"/quizzes/{grading_setup.quiz.id}/attempts", headers=auth_headers(grading_setup.teacher))
    assert r_teacher.status_code == 200
    assert len(r_teacher.json()["data"]) == 2

    r_student = client.get(f"/quizzes/{grading_setup.quiz.id}/attempts", headers=auth_headers(grading_setup.student))
    assert [a["id"] for a in r_student.json()["data"]] == [own.id]

    r_other = client.get(f"/quizzes/attempts/{own.id}", headers=auth_headers(other_student))
    assert r_other.status_code == 403
