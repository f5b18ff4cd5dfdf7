from typing import List, Optional
from sqlalchemy.orm import Session
from app.models.all_models import Student


def find_student_by_id(db: Session, student_id: int) -> Optional[Student]:
    return db.query(Student).filter(Student.id == student_id).first()


def find_students_by_grade_and_class(db: Session, grade: int, class_num: int) -> List[Student]:
    return db.query(Student).filter(
        Student.grade == grade,
        Student.class_num == class_num
    ).order_by(Student.student_num).all()
