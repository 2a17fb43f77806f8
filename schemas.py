"""Pydantic schemas for curriculum documents, request bodies and projections."""

from __future__ import annotations

from typing import List, Literal
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, Field, field_validator

__all__ = [
    "Track",
    "TRACKS",
    "Role",
    "new_id",
    "Question",
    "Level",
    "AssignmentStub",
    "Topic",
    "LoginBody",
    "NameBody",
    "RenameBody",
    "ProgressBody",
    "QuestionProgress",
    "LevelProgress",
    "TopicProgress",
    "Profile",
    "LoginResponse",
]

Track = Literal["questions", "revision"]
TRACKS: tuple[str, ...] = ("questions", "revision")
Role = Literal["admin", "user"]


def new_id() -> str:
    return uuid4().hex


# ---------- Curriculum documents ----------
class Question(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    # Serialized as lists, treated as sets of user ids.
    completed_questions: List[str] = Field(default_factory=list)
    completed_revision: List[str] = Field(default_factory=list)

    def members(self, track: Track) -> List[str]:
        if track == "questions":
            return self.completed_questions
        if track == "revision":
            return self.completed_revision
        raise ValueError(f"unknown track: {track!r}")


class Level(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    questions: List[Question] = Field(default_factory=list)


class AssignmentStub(BaseModel):
    """Placeholder kept on every topic; no operation mutates it."""
    id: str = Field(default_factory=new_id)
    name: str | None = None


class Topic(BaseModel):
    """Aggregate root: one stored document per topic."""
    id: str = Field(default_factory=new_id)
    name: str
    levels: List[Level] = Field(default_factory=list)
    assignments: List[AssignmentStub] = Field(default_factory=list)
    version: int = Field(default=0, description="Store version the document was read at.")


# ---------- Request bodies ----------
class LoginBody(BaseModel):
    email: str
    password: str


class NameBody(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class RenameBody(BaseModel):
    # A missing or blank name keeps the current one.
    name: str | None = None


class ProgressBody(BaseModel):
    topicId: str
    levelId: str
    questionId: str
    track: str = Field(validation_alias=AliasChoices("track", "tab"))
    completed: bool


# ---------- Projections ----------
class QuestionProgress(BaseModel):
    questionId: str
    name: str
    completedQuestions: bool
    completedRevision: bool


class LevelProgress(BaseModel):
    levelId: str
    name: str
    questions: List[QuestionProgress]


class TopicProgress(BaseModel):
    topicId: str
    name: str
    levels: List[LevelProgress]


class Profile(BaseModel):
    username: str
    email: str
    role: Role


class LoginResponse(Profile):
    token: str
