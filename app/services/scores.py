# app/services/scores.py
import logging
from typing import Optional
from sqlalchemy.orm import Session

from app.crud.scores import (
    delete_score as delete_score_row,
    find_class_scores,
    find_score,
    find_scores_by_student,
    insert_score_if_absent,
    merge_score_subjects,
    set_score_totals,
)
from app.crud.students import find_student_by_id, find_students_by_grade_and_class
from app.models.all_models import SUBJECT_FIELDS, Score, Student, now_local
from app.schemas.scores_schemas import (
    ClassScoresResponse,
    ClassStudentScore,
    MessageResponse,
    ScoreCreate,
    ScoreDetail,
    ScoreOutcome,
    ScoreUpdate,
    ScoreUpsertResponse,
    SemesterScore,
    StudentScoresResponse,
    SubjectScores,
)
from app.services.notifications import NotificationSink

logger = logging.getLogger(__name__)

# Retries when a row vanishes between the conflicting insert and the merge
MAX_UPSERT_ATTEMPTS = 3

OUTCOME_MESSAGES = {
    ScoreOutcome.CREATED: "Score record created successfully",
    ScoreOutcome.UPDATED: "Score record updated successfully",
}

NOTIFICATION_VERBS = {
    ScoreOutcome.CREATED: "registered",
    ScoreOutcome.UPDATED: "updated",
}


class NotFoundError(Exception):
    pass


class StudentNotFoundError(NotFoundError):
    def __init__(self, student_id: int):
        super().__init__(f"Student with id {student_id} not found")
        self.student_id = student_id


class ScoreNotFoundError(NotFoundError):
    pass


class ScoreConflictError(Exception):
    pass


def _subject_scores(score: Score) -> SubjectScores:
    return SubjectScores(**{field: getattr(score, field) for field in SUBJECT_FIELDS})


def _score_detail(score: Score) -> ScoreDetail:
    return ScoreDetail(
        id=score.id,
        student_id=score.student_id,
        grade=score.grade,
        semester=score.semester,
        subjects=_subject_scores(score),
        total_score=score.total_score,
        average_score=score.average_score
    )


def _semester_score(score: Score) -> SemesterScore:
    return SemesterScore(
        grade=score.grade,
        semester=score.semester,
        subjects=_subject_scores(score),
        total_score=score.total_score,
        average_score=score.average_score
    )


def _notify_student(notifier: Optional[NotificationSink], student: Student, score: ScoreDetail, outcome: ScoreOutcome):
    if notifier is None or student.user_id is None:
        return
    message = (
        f"{student.name}'s scores for grade {score.grade} semester {score.semester} "
        f"have been {NOTIFICATION_VERBS[outcome]}. Average: {score.average_score:.2f}"
    )
    try:
        notifier.notify(str(student.user_id), message)
    except Exception as e:
        logger.error(f"Error dispatching notification for student {student.id}: {e}")


def create_or_update_score(db: Session, data: ScoreCreate, notifier: Optional[NotificationSink] = None) -> ScoreUpsertResponse:
    """
    Register scores for a (student, grade, semester), or merge them into the existing record.

    Only the subject slots present in `data` are written. Totals are always
    recomputed from the merged row before commit.
    """
    student = find_student_by_id(db, data.student_id)
    if not student:
        raise StudentNotFoundError(data.student_id)

    subjects = data.provided()

    try:
        for attempt in range(1, MAX_UPSERT_ATTEMPTS + 1):
            now = now_local()
            if insert_score_if_absent(db, student.id, data.grade, data.semester, subjects, now) is not None:
                outcome = ScoreOutcome.CREATED
                break
            if merge_score_subjects(db, student.id, data.grade, data.semester, subjects, now):
                outcome = ScoreOutcome.UPDATED
                break
            logger.warning(
                f"Score for student {student.id} grade {data.grade} semester {data.semester} "
                f"disappeared during upsert (attempt {attempt})"
            )
        else:
            raise ScoreConflictError(
                f"Could not save score for student {student.id} grade {data.grade} semester {data.semester}"
            )

        score = find_score(db, student.id, data.grade, data.semester, refresh=True)
        set_score_totals(score)
        db.flush()
        detail = _score_detail(score)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Score {detail.id} {outcome.value} for student {student.id} grade {detail.grade} semester {detail.semester}")
    _notify_student(notifier, student, detail, outcome)

    return ScoreUpsertResponse(message=OUTCOME_MESSAGES[outcome], outcome=outcome, score=detail)


def update_score(
    db: Session,
    student_id: int,
    grade: int,
    semester: int,
    data: ScoreUpdate,
    notifier: Optional[NotificationSink] = None
) -> ScoreUpsertResponse:
    """Merge subject scores into an existing record; the record must already exist."""
    student = find_student_by_id(db, student_id)
    if not student:
        raise StudentNotFoundError(student_id)

    try:
        affected = merge_score_subjects(db, student_id, grade, semester, data.provided(), now_local())
        if affected == 0:
            raise ScoreNotFoundError(
                f"Score for student {student_id} grade {grade} semester {semester} not found"
            )
        score = find_score(db, student_id, grade, semester, refresh=True)
        set_score_totals(score)
        db.flush()
        detail = _score_detail(score)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Score {detail.id} updated for student {student_id} grade {grade} semester {semester}")
    _notify_student(notifier, student, detail, ScoreOutcome.UPDATED)

    return ScoreUpsertResponse(
        message=OUTCOME_MESSAGES[ScoreOutcome.UPDATED],
        outcome=ScoreOutcome.UPDATED,
        score=detail
    )


def get_student_scores(db: Session, student_id: int, semester: Optional[int] = None) -> StudentScoresResponse:
    student = find_student_by_id(db, student_id)
    if not student:
        raise StudentNotFoundError(student_id)

    scores = find_scores_by_student(db, student_id, semester)
    if not scores:
        raise ScoreNotFoundError(f"No scores found for student {student_id}")

    return StudentScoresResponse(
        message="Student scores retrieved",
        student_id=student.id,
        student_num=str(student.student_num),
        student_name=student.name,
        grade=student.grade,
        scores=[_semester_score(score) for score in scores]
    )


def get_class_scores(db: Session, grade: int, semester: int, class_num: int) -> ClassScoresResponse:
    """Scores of every student in a classroom; students without a record are left out."""
    students = find_students_by_grade_and_class(db, grade, class_num)
    scores = {
        score.student_id: score
        for score in find_class_scores(db, [student.id for student in students], grade, semester)
    }

    result = []
    for student in students:
        score = scores.get(student.id)
        if score is None:
            continue
        result.append(ClassStudentScore(
            student_id=student.id,
            name=student.name,
            class_num=student.class_num,
            **_semester_score(score).model_dump()
        ))

    if not result:
        return ClassScoresResponse(message="No score records found for this class", students=[])
    return ClassScoresResponse(message="Class scores retrieved", students=result)


def delete_score(db: Session, student_id: int, grade: int, semester: int) -> MessageResponse:
    try:
        deleted = delete_score_row(db, student_id, grade, semester)
        if deleted == 0:
            raise ScoreNotFoundError(
                f"Score for student {student_id} grade {grade} semester {semester} not found"
            )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Score deleted for student {student_id} grade {grade} semester {semester}")
    return MessageResponse(message="Score record deleted successfully")
