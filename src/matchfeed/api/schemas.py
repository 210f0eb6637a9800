from __future__ import annotations

from pydantic import BaseModel, Field

from matchfeed.types import ChatAction, RankedJob


class ProfileResponse(BaseModel):
    email: str
    has_resume: bool


class ResumeUploadRequest(BaseModel):
    resume_text: str = Field(min_length=1)


class ResumeUploadResponse(BaseModel):
    status: str = "success"
    message: str
    resume_version: int


class ChatRequest(BaseModel):
    message: str = ""


class ChatResponse(BaseModel):
    reply: str
    action: ChatAction | None = None


class ApplicationRequest(BaseModel):
    job_id: str
    job_title: str = ""
    company: str = ""
    status: str = "Applied"


class SeedResponse(BaseModel):
    message: str
    inserted: int = 0


RankedJobsResponse = list[RankedJob]
