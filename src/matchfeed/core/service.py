from __future__ import annotations

import asyncio
import logging

from matchfeed.core.agent import ToolRouter
from matchfeed.core.cache import MatchCache
from matchfeed.core.job_search import AdzunaJobSearch
from matchfeed.db.stores import ApplicationStore, JobStore, ResumeStore
from matchfeed.types import ApplicationRecord, ChatReply, RankedJobList

logger = logging.getLogger(__name__)


class MatchFeedService:
    """Operations the HTTP and CLI layers call into."""

    def __init__(
        self,
        *,
        cache: MatchCache,
        router: ToolRouter,
        jobs: JobStore,
        resumes: ResumeStore,
        applications: ApplicationStore,
        job_search: AdzunaJobSearch,
    ):
        self.cache = cache
        self.router = router
        self.jobs = jobs
        self.resumes = resumes
        self.applications = applications
        self.job_search = job_search

    async def get_ranked_jobs(self) -> RankedJobList:
        return await self.cache.get_ranked_jobs()

    async def handle_chat(self, message: str) -> ChatReply:
        return await self.router.handle(message)

    async def on_resume_changed(self) -> None:
        await self.cache.invalidate()

    async def on_jobs_ingested(self) -> None:
        await self.cache.invalidate()

    async def upload_resume(self, resume_text: str) -> int:
        version = await asyncio.to_thread(self.resumes.replace_resume, resume_text)
        await self.on_resume_changed()
        logger.info("Resume updated to version %d", version)
        return version

    async def has_resume(self) -> bool:
        return bool(await asyncio.to_thread(self.resumes.get_current_resume_text))

    async def record_application(
        self, *, job_id: str, job_title: str = "", company: str = "", status: str = "Applied"
    ) -> ApplicationRecord:
        return await asyncio.to_thread(
            lambda: self.applications.upsert(job_id=job_id, job_title=job_title, company=company, status=status)
        )

    async def list_applications(self) -> list[ApplicationRecord]:
        return await asyncio.to_thread(self.applications.list_recent)

    async def reseed(self, term: str) -> int:
        """Drop all applications and jobs, then pull a fresh batch for ``term``."""
        await asyncio.to_thread(self.applications.clear)
        await asyncio.to_thread(self.jobs.clear)
        await self.cache.invalidate()

        found = await asyncio.to_thread(self.job_search.search, term)
        if not found:
            return 0
        inserted = await asyncio.to_thread(self.jobs.insert_jobs, found)
        await self.on_jobs_ingested()
        return inserted
