# schemas/scores.py

from pydantic import BaseModel, Field
from enum import Enum
from typing import Dict, List, Optional

from app.models.all_models import SUBJECT_FIELDS


class ScoreOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class SubjectScores(BaseModel):
    # Non-negative and finite; NaN or Infinity would poison the totals
    subject1: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    subject2: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    subject3: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    subject4: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    subject5: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    subject6: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    subject7: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    subject8: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)

    def provided(self) -> Dict[str, Optional[float]]:
        """Only the slots the caller actually sent"""
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True).items()
            if field in SUBJECT_FIELDS
        }


class ScoreCreate(SubjectScores):
    student_id: int
    grade: int = Field(ge=1)
    semester: int = Field(ge=1)


class ScoreUpdate(SubjectScores):
    pass


class ScoreDetail(BaseModel):
    id: int
    student_id: int
    grade: int
    semester: int
    subjects: SubjectScores
    total_score: float
    average_score: float


class ScoreUpsertResponse(BaseModel):
    message: str
    outcome: ScoreOutcome
    score: ScoreDetail


class SemesterScore(BaseModel):
    grade: int
    semester: int
    subjects: SubjectScores
    total_score: float
    average_score: float


class StudentScoresResponse(BaseModel):
    message: str
    student_id: int
    student_num: str
    student_name: str
    grade: int
    scores: List[SemesterScore]


class ClassStudentScore(SemesterScore):
    student_id: int
    name: str
    class_num: int


class ClassScoresResponse(BaseModel):
    message: str
    students: List[ClassStudentScore]


class MessageResponse(BaseModel):
    message: str
