import logging
import random
from faker import Faker
from sqlalchemy.orm import Session

from app.database import SessionLocal, init_db
from app.models.all_models import SUBJECT_FIELDS, Student, User, UserRole
from app.schemas.scores_schemas import ScoreCreate
from app.services.scores import create_or_update_score
from app.utils.auth import get_password_hash

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

fake = Faker(['ko_KR'])

GRADES = [1, 2, 3]
CLASSES_PER_GRADE = 3
STUDENTS_PER_CLASS = 10
SEMESTERS = [1, 2]


def create_user(db: Session, username: str, role: UserRole, password: str = "password123") -> User:
    user = User(
        username=username,
        email=f"{username}@school.example",
        password_hash=get_password_hash(password),
        role=role,
        is_active=True
    )
    db.add(user)
    db.flush()
    return user


def seed_users(db: Session):
    create_user(db, "admin", UserRole.ADMIN)
    for grade in GRADES:
        create_user(db, f"teacher{grade}", UserRole.TEACHER)
    db.commit()


def seed_students(db: Session):
    students = []
    for grade in GRADES:
        for class_num in range(1, CLASSES_PER_GRADE + 1):
            for number in range(1, STUDENTS_PER_CLASS + 1):
                student_num = grade * 10000 + class_num * 100 + number
                # roughly half the students have their own login
                user = create_user(db, f"s{student_num}", UserRole.STUDENT) if random.random() < 0.5 else None
                student = Student(
                    student_num=student_num,
                    name=fake.name(),
                    grade=grade,
                    class_num=class_num,
                    user_id=user.id if user else None
                )
                db.add(student)
                students.append(student)
    db.commit()
    logger.info(f"Created {len(students)} students")
    return students


def seed_scores(db: Session, students):
    count = 0
    for student in students:
        for grade in range(1, student.grade + 1):
            for semester in SEMESTERS:
                entered = random.sample(SUBJECT_FIELDS, k=random.randint(4, len(SUBJECT_FIELDS)))
                subjects = {field: round(random.uniform(40, 100), 1) for field in entered}
                create_or_update_score(
                    db,
                    ScoreCreate(student_id=student.id, grade=grade, semester=semester, **subjects)
                )
                count += 1
    logger.info(f"Created {count} score records")


def seed():
    init_db()
    db = SessionLocal()
    try:
        if db.query(User).filter(User.username == "admin").first():
            logger.info("Database already seeded")
            return
        seed_users(db)
        students = seed_students(db)
        seed_scores(db, students)
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
