"""Wire schemas. Fields are snake_case on the wire."""

from __future__ import annotations

from pydantic import BaseModel

from traechan.domain import User


class UserResponse(BaseModel):
    id: int
    email: str | None
    name: str | None
    avatar_url: str | None
    created_at: str

    @classmethod
    def from_domain(cls, user: User) -> UserResponse:
        return cls(
            id=user.id,
            email=user.email,
            name=user.display_name,
            avatar_url=user.avatar_url,
            created_at=user.created_at.isoformat(),
        )


class GoogleCallbackResponse(BaseModel):
    is_new_user: bool
    token: str
    user: UserResponse


class ErrorResponse(BaseModel):
    error: str
    status_code: int


class ServiceInfoResponse(BaseModel):
    message: str
    version: str


class HealthResponse(BaseModel):
    status: str
