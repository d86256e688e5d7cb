from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.user import User
from app.schemas.user import CourseCreate

class CRUDCourse(CRUDBase[Course, CourseCreate, CourseCreate]):

    def add_teacher(self, db: Session, *, course: Course, teacher: User) -> Course:
        if teacher not in course.teachers:
            course.teachers.append(teacher)
            db.commit()
            db.refresh(course)
        return course

    def add_student(self, db: Session, *, course: Course, student: User) -> Course:
        if student not in course.students:
            course.students.append(student)
            db.commit()
            db.refresh(course)
        return course

course = CRUDCourse(Course)
