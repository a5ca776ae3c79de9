"""Pydantic models for API requests.

Validation happens here, before any store access; FastAPI reports
failures as 422 responses.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.core.generation_compiler import DEFAULT_LENGTH, DEFAULT_MOOD, GenerationRequest
from backend.core.types import TalePatch
from .enums import AgeRange

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class CreateTaleRequest(BaseModel):
    """Request body for creating a tale."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200, description="Tale title")
    content: str = Field(..., min_length=1, description="Tale text")
    age_range: AgeRange = Field(..., description="Reader age band")
    topic: str = Field(..., min_length=1, max_length=200, description="What the tale is about")
    is_public: bool = Field(default=False, description="Whether other users can see and like the tale")


class UpdateTaleRequest(BaseModel):
    """Request body for updating a tale. Omitted or empty fields are left unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = None
    is_public: Optional[bool] = None

    def to_patch(self) -> TalePatch:
        return TalePatch(title=self.title, content=self.content, is_public=self.is_public)


class GenerateTaleRequest(BaseModel):
    """Request body for generating tale text.

    age_range and length are free-form: unrecognized values fall back to
    the 9-12 band and the medium length.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    age_range: str = Field(..., min_length=1, max_length=10, examples=["3-5", "6-8", "9-12"])
    topic: str = Field(..., min_length=1, max_length=200, examples=["sharing with friends"])
    main_character: Optional[str] = Field(default=None, max_length=200, examples=["a curious fox"])
    setting: Optional[str] = Field(default=None, max_length=200)
    mood: str = Field(default=DEFAULT_MOOD, max_length=50)
    length: str = Field(default=DEFAULT_LENGTH, max_length=20, examples=["short", "medium", "long"])
    moral_lesson: Optional[str] = Field(default=None, max_length=200)

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(
            title=self.title,
            age_range=self.age_range,
            topic=self.topic,
            main_character=self.main_character or "",
            setting=self.setting or "",
            mood=self.mood,
            length=self.length,
            moral_lesson=self.moral_lesson or "",
        )


class RegisterRequest(BaseModel):
    """Request body for creating an account."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(BaseModel):
    """Login request with email and password."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=72)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()
