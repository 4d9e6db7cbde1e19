from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class CreateUserRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)
    email: Optional[str] = None

class LoginRequest(BaseModel):
    username: str
    password: str

class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    first_time_user: bool = Field(alias="firstTimeUser")

class AssessmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    answers: list[Any]
    ai_reply: Optional[str] = Field(None, alias="aiReply")

class Assessment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    answers: list[Any]
    ai_reply: Optional[str] = Field(None, alias="aiReply")

class UserProfileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    email: Optional[str] = None
    first_time_user: bool = Field(alias="firstTimeUser")
    assessments: list[Assessment] = []
