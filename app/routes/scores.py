# routers/scores.py

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.models.all_models import User
from app.schemas.scores_schemas import (
    ClassScoresResponse,
    MessageResponse,
    ScoreCreate,
    ScoreOutcome,
    ScoreUpdate,
    ScoreUpsertResponse,
    StudentScoresResponse,
)
from app.services import scores as score_service
from app.services.notifications import NotificationSink, get_notifier
from app.utils.auth import get_current_user, verify_staff


router = APIRouter(prefix="/api/scores", tags=["Scores"])


def not_found(error: score_service.NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


@router.post("/", response_model=ScoreUpsertResponse, status_code=status.HTTP_201_CREATED)
def submit_scores(
    data: ScoreCreate,
    response: Response,
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
    current_user: User = Depends(verify_staff)
):
    """Register a semester's scores or merge into the existing record"""
    try:
        result = score_service.create_or_update_score(db, data, notifier)
    except score_service.NotFoundError as e:
        raise not_found(e)
    except score_service.ScoreConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    if result.outcome == ScoreOutcome.UPDATED:
        response.status_code = status.HTTP_200_OK
    return result


@router.patch("/{student_id}/{grade}/{semester}", response_model=ScoreUpsertResponse)
def update_scores(
    student_id: int,
    grade: int,
    semester: int,
    data: ScoreUpdate,
    db: Session = Depends(get_db),
    notifier: NotificationSink = Depends(get_notifier),
    current_user: User = Depends(verify_staff)
):
    try:
        return score_service.update_score(db, student_id, grade, semester, data, notifier)
    except score_service.NotFoundError as e:
        raise not_found(e)


@router.get("/student/{student_id}", response_model=StudentScoresResponse)
def get_student_scores(
    student_id: int,
    semester: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        return score_service.get_student_scores(db, student_id, semester)
    except score_service.NotFoundError as e:
        raise not_found(e)


@router.get("/class", response_model=ClassScoresResponse)
def get_class_scores(
    grade: int = Query(..., ge=1),
    semester: int = Query(..., ge=1),
    classroom: int = Query(..., ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    return score_service.get_class_scores(db, grade, semester, classroom)


@router.delete("/{student_id}/{grade}/{semester}", response_model=MessageResponse)
def delete_scores(
    student_id: int,
    grade: int,
    semester: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff)
):
    try:
        return score_service.delete_score(db, student_id, grade, semester)
    except score_service.NotFoundError as e:
        raise not_found(e)
