from sqlalchemy import Boolean, Column, String, Integer, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import RoleEnum
from app.models.course import course_teachers_association, course_students_association

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(Enum(RoleEnum), nullable=False, default=RoleEnum.STUDENT)
    is_active = Column(Boolean(), default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    teaching_courses = relationship("Course", secondary=course_teachers_association, back_populates="teachers")
    enrolled_courses = relationship("Course", secondary=course_students_association, back_populates="students")
    quiz_attempts = relationship("QuizAttempt", back_populates="student", cascade="all, delete-orphan")
