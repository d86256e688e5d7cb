from fastapi import HTTPException, status

from app.models.user import User
from app.models.course import Course
from app.schemas.user import UserContext
from app.core.constants import RoleEnum


class PermissionHelper:
    @staticmethod
    def is_super_admin(context: UserContext) -> bool:
        return context.role == RoleEnum.SUPER_ADMIN

    @staticmethod
    def is_teacher(context: UserContext) -> bool:
        return context.role == RoleEnum.TEACHER

    @staticmethod
    def is_student(context: UserContext) -> bool:
        return context.role == RoleEnum.STUDENT

    @staticmethod
    def is_teacher_of_course(user: User, course: Course) -> bool:
        return user.id in [teacher.id for teacher in course.teachers]

    @staticmethod
    def is_student_of_course(user: User, course: Course) -> bool:
        return user.id in [student.id for student in course.students]

    @staticmethod
    def can_manage_course(context: UserContext, course: Course) -> bool:
        if PermissionHelper.is_super_admin(context):
            return True
        return PermissionHelper.is_teacher(context) and PermissionHelper.is_teacher_of_course(context.user, course)

    @staticmethod
    def can_view_course(context: UserContext, course: Course) -> bool:
        if PermissionHelper.can_manage_course(context, course):
            return True
        return PermissionHelper.is_student(context) and PermissionHelper.is_student_of_course(context.user, course)

    @staticmethod
    def require_course_management_permission(context: UserContext, course: Course):
        if not PermissionHelper.can_manage_course(context, course):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only an instructor of this course can perform this action."
            )

    @staticmethod
    def require_grading_permission(context: UserContext, course: Course):
        if not PermissionHelper.can_manage_course(context, course):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only an instructor of this quiz's course can grade its attempts."
            )
