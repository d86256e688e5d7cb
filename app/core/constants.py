from enum import Enum


class RoleEnum(str, Enum):
    SUPER_ADMIN = "super_admin"
    TEACHER = "teacher"
    STUDENT = "student"

class QuestionTypeEnum(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"
    ESSAY = "essay"

AUTO_GRADED_QUESTION_TYPES = frozenset({QuestionTypeEnum.MULTIPLE_CHOICE, QuestionTypeEnum.TRUE_FALSE})
MANUALLY_GRADED_QUESTION_TYPES = frozenset({QuestionTypeEnum.SHORT_ANSWER, QuestionTypeEnum.ESSAY})

class QuizAttemptStatusEnum(str, Enum):
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    GRADED = "graded"

class GradedStatusPolicyEnum(str, Enum):
    # "graded" as soon as one manual grade exists
    ANY = "any"
    # "graded" only once every manually graded question has a grade
    ALL = "all"

QUIZ_GRADED_EVENT = "quiz_graded"
