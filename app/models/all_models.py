from sqlalchemy import Column, String, Integer, Float, DateTime, Boolean, Text, ForeignKey, Enum as SQLEnum, Uuid, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
from enum import Enum
import uuid
from pytz import timezone

from app.config import settings

Base = declarative_base()

# Eight subject slots, in display order
SUBJECT_FIELDS = tuple(f"subject{i}" for i in range(1, 9))


def now_local() -> datetime:
    return datetime.now(timezone(settings.TIMEZONE))


# Enum Classes
class UserRole(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


# Model Classes
class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(100), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=now_local)
    updated_at = Column(DateTime, default=now_local, onupdate=now_local)

    student = relationship("Student", back_populates="user", uselist=False)
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_num = Column(Integer, unique=True, nullable=False)
    name = Column(String(50), nullable=False)
    grade = Column(Integer, nullable=False)
    class_num = Column("class", Integer, nullable=False)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=True)
    created_at = Column(DateTime, default=now_local)
    updated_at = Column(DateTime, default=now_local, onupdate=now_local)

    user = relationship("User", back_populates="student")
    scores = relationship("Score", back_populates="student", cascade="all, delete-orphan")


class Score(Base):
    __tablename__ = "scores"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    grade = Column(Integer, nullable=False)
    semester = Column(Integer, nullable=False)
    subject1 = Column(Float)
    subject2 = Column(Float)
    subject3 = Column(Float)
    subject4 = Column(Float)
    subject5 = Column(Float)
    subject6 = Column(Float)
    subject7 = Column(Float)
    subject8 = Column(Float)
    total_score = Column(Float, nullable=False, default=0)
    average_score = Column(Float, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=now_local)
    updated_at = Column(DateTime, nullable=False, default=now_local)

    # One score record per student per grade and semester
    __table_args__ = (
        UniqueConstraint('student_id', 'grade', 'semester', name='unique_student_grade_semester_score'),
    )
    student = relationship("Student", back_populates="scores")

    @property
    def subjects(self):
        return [getattr(self, field) for field in SUBJECT_FIELDS]


class Notification(Base):
    """In-app notification delivered to a user"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=now_local)

    user = relationship("User", back_populates="notifications")
