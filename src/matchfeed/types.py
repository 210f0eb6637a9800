from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

EmploymentType = Literal["Full-time", "Part-time", "Contract", "Internship"]
ActionType = Literal["REFRESH_FEED", "UPDATE_FILTER"]

MAX_REASON_CHARS = 120


class JobRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    company: str = ""
    location: str = ""
    description: str = ""
    employment_type: EmploymentType = "Full-time"
    posted_at: datetime | None = None
    job_url: str = ""
    salary: str = "Not disclosed"


class ScoreEntry(BaseModel):
    score: int = 0
    reason: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value: object) -> int:
        try:
            number = int(round(float(value)))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("score must be numeric") from exc
        return max(0, min(100, number))

    @field_validator("reason", mode="before")
    @classmethod
    def bound_reason(cls, value: object) -> str:
        return str(value or "")[:MAX_REASON_CHARS]


class RankedJob(JobRecord):
    match_score: int = 0
    match_reason: str = ""


class RankedJobList(BaseModel):
    jobs: list[RankedJob] = Field(default_factory=list)
    scored: bool = False

    def __len__(self) -> int:
        return len(self.jobs)


class ChatAction(BaseModel):
    type: ActionType
    term: str | None = None
    filter: str | None = None
    value: str | None = None


class ChatReply(BaseModel):
    reply: str
    action: ChatAction | None = None


class ApplicationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    job_id: str
    job_title: str = ""
    company: str = ""
    status: str = "Applied"
    applied_at: datetime | None = None


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)
