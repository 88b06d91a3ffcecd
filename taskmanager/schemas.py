from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import Priority


class RegisterRequest(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""

    @field_validator("username", "email")
    @classmethod
    def strip(cls, v):
        return v.strip()


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""

    @field_validator("username")
    @classmethod
    def strip(cls, v):
        return v.strip()


class TaskCreate(BaseModel):
    title: str = Field(default="", validate_default=True)
    description: Optional[str] = ""
    priority: Priority = Priority.MEDIUM

    @field_validator("title")
    @classmethod
    def title_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Task title is required")
        return v

    @field_validator("description")
    @classmethod
    def strip_description(cls, v):
        return (v or "").strip()

    @field_validator("priority", mode="before")
    @classmethod
    def known_priority(cls, v):
        if not isinstance(v, str) or v not in {p.value for p in Priority}:
            raise ValueError("Priority must be low, medium, or high")
        return v


class TaskCompletionUpdate(BaseModel):
    completed: bool = Field(default=None, validate_default=True)

    @field_validator("completed", mode="before")
    @classmethod
    def must_be_bool(cls, v):
        if not isinstance(v, bool):
            raise ValueError("Completed status must be a boolean")
        return v


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    created_at: datetime


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    description: str
    completed: bool
    priority: Priority
    created_at: datetime
    updated_at: datetime


class ApiResponse(BaseModel):
    success: bool
    message: str


class AuthResponse(ApiResponse):
    user: Optional[UserOut] = None
    token: Optional[str] = None


class TaskResponse(ApiResponse):
    data: TaskOut


class TaskListResponse(ApiResponse):
    data: list[TaskOut]
