from pydantic import BaseModel
from typing import Optional
from uuid import UUID

from app.models.all_models import UserRole

class LoginRequest(BaseModel):
    username: str
    password: str

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class UserInfo(BaseModel):
    id: UUID
    username: str
    email: str
    role: UserRole
    student_id: Optional[int] = None

    class Config:
        from_attributes = True
