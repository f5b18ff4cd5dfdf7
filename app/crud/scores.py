# crud/scores.py

from datetime import datetime
from typing import Dict, List, Optional, Sequence
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.models.all_models import SUBJECT_FIELDS, Score
from app.utils.score_utils import aggregate

TRIPLE_COLUMNS = ["student_id", "grade", "semester"]


def _dialect_insert(db: Session):
    """INSERT construct supporting ON CONFLICT for the bound database"""
    if db.get_bind().dialect.name == "postgresql":
        return pg_insert
    return sqlite_insert


def _triple_filter(query, student_id: int, grade: int, semester: int):
    return query.filter(
        Score.student_id == student_id,
        Score.grade == grade,
        Score.semester == semester
    )


def find_score(db: Session, student_id: int, grade: int, semester: int, refresh: bool = False) -> Optional[Score]:
    query = _triple_filter(db.query(Score), student_id, grade, semester)
    if refresh:
        # rows changed by bulk statements in this session must not come back stale
        query = query.populate_existing()
    return query.first()


def find_scores_by_student(db: Session, student_id: int, semester: Optional[int] = None) -> List[Score]:
    query = db.query(Score).filter(Score.student_id == student_id)
    if semester is not None:
        query = query.filter(Score.semester == semester)
    return query.order_by(Score.grade, Score.semester).all()


def find_class_scores(db: Session, student_ids: Sequence[int], grade: int, semester: int) -> List[Score]:
    if not student_ids:
        return []
    return db.query(Score).filter(
        Score.student_id.in_(student_ids),
        Score.grade == grade,
        Score.semester == semester
    ).all()


def insert_score_if_absent(
    db: Session,
    student_id: int,
    grade: int,
    semester: int,
    subjects: Dict[str, Optional[float]],
    now: datetime
) -> Optional[int]:
    """
    Insert a new score row for the triple unless one already exists.

    Returns the new row id, or None when the unique constraint on
    (student_id, grade, semester) made the insert a no-op.
    """
    total, average = aggregate(subjects.get(field) for field in SUBJECT_FIELDS)
    stmt = (
        _dialect_insert(db)(Score.__table__)
        .values(
            student_id=student_id,
            grade=grade,
            semester=semester,
            total_score=total,
            average_score=average,
            created_at=now,
            updated_at=now,
            **subjects
        )
        .on_conflict_do_nothing(index_elements=TRIPLE_COLUMNS)
        .returning(Score.__table__.c.id)
    )
    return db.execute(stmt).scalar_one_or_none()


def merge_score_subjects(
    db: Session,
    student_id: int,
    grade: int,
    semester: int,
    subjects: Dict[str, Optional[float]],
    now: datetime
) -> int:
    """Overwrite only the given subject slots. Returns the affected row count."""
    values = dict(subjects)
    values["updated_at"] = now
    return _triple_filter(db.query(Score), student_id, grade, semester).update(
        values, synchronize_session=False
    )


def set_score_totals(score: Score) -> Score:
    score.total_score, score.average_score = aggregate(score.subjects)
    return score


def delete_score(db: Session, student_id: int, grade: int, semester: int) -> int:
    return _triple_filter(db.query(Score), student_id, grade, semester).delete(
        synchronize_session=False
    )
