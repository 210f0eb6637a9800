from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from matchfeed.api.deps import get_match_service
from matchfeed.api.schemas import (
    ApplicationRequest,
    ChatRequest,
    ChatResponse,
    ProfileResponse,
    RankedJobsResponse,
    ResumeUploadRequest,
    ResumeUploadResponse,
    SeedResponse,
)
from matchfeed.config import get_settings
from matchfeed.core.service import MatchFeedService
from matchfeed.types import ApplicationRecord

router = APIRouter(tags=["api"])


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(service: MatchFeedService = Depends(get_match_service)) -> ProfileResponse:
    return ProfileResponse(email=get_settings().demo_user_email, has_resume=await service.has_resume())


@router.post("/upload-resume", response_model=ResumeUploadResponse)
async def upload_resume(
    payload: ResumeUploadRequest,
    service: MatchFeedService = Depends(get_match_service),
) -> ResumeUploadResponse:
    if not payload.resume_text.strip():
        raise HTTPException(status_code=400, detail="Resume text is empty")

    version = await service.upload_resume(payload.resume_text)
    return ResumeUploadResponse(message="Resume saved!", resume_version=version)


@router.get("/jobs", response_model=RankedJobsResponse)
async def get_jobs(service: MatchFeedService = Depends(get_match_service)) -> RankedJobsResponse:
    ranked = await service.get_ranked_jobs()
    return ranked.jobs


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(payload: ChatRequest, service: MatchFeedService = Depends(get_match_service)) -> ChatResponse:
    if not payload.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")

    reply = await service.handle_chat(payload.message)
    return ChatResponse.model_validate(reply.model_dump())


@router.post("/applications", response_model=ApplicationRecord)
async def confirm_application(
    payload: ApplicationRequest,
    service: MatchFeedService = Depends(get_match_service),
) -> ApplicationRecord:
    return await service.record_application(
        job_id=payload.job_id,
        job_title=payload.job_title,
        company=payload.company,
        status=payload.status or "Applied",
    )


@router.get("/applications", response_model=list[ApplicationRecord])
async def list_applications(service: MatchFeedService = Depends(get_match_service)) -> list[ApplicationRecord]:
    return await service.list_applications()


@router.post("/seed", response_model=SeedResponse)
async def seed(service: MatchFeedService = Depends(get_match_service)) -> SeedResponse:
    term = get_settings().seed_search_term
    inserted = await service.reseed(term)
    if not inserted:
        return SeedResponse(message="Failed to fetch jobs.", inserted=0)
    return SeedResponse(message=f"Reset complete. Seeded {inserted} jobs.", inserted=inserted)
