from __future__ import annotations

import asyncio
import logging

from matchfeed.core.scoring import ScoringOracle
from matchfeed.db.stores import JobStore, ResumeStore
from matchfeed.types import JobRecord, RankedJob, RankedJobList, ScoreEntry

logger = logging.getLogger(__name__)

NO_RESUME_REASON = "Upload resume to see score"
MISSING_SCORE = ScoreEntry(score=0, reason="N/A")


class JobRankingPipeline:
    """Load jobs and resume, score them once, merge and sort. No caching here."""

    def __init__(self, jobs: JobStore, resumes: ResumeStore, scorer: ScoringOracle, *, page_size: int = 50):
        self.jobs = jobs
        self.resumes = resumes
        self.scorer = scorer
        self.page_size = page_size

    async def compute(self) -> RankedJobList:
        try:
            resume_text = await asyncio.to_thread(self.resumes.get_current_resume_text)
            jobs = await asyncio.to_thread(self.jobs.list_recent_jobs, self.page_size)

            if not resume_text:
                return RankedJobList(
                    jobs=[_ranked(job, ScoreEntry(score=0, reason=NO_RESUME_REASON)) for job in jobs],
                    scored=False,
                )

            scores = await self.scorer.score(resume_text, jobs)
            merged = [_ranked(job, scores.get(job.id, MISSING_SCORE)) for job in jobs]
            # sorted() is stable, so equal scores keep retrieval order
            merged = sorted(merged, key=lambda item: item.match_score, reverse=True)
            return RankedJobList(jobs=merged, scored=True)
        except Exception:
            logger.exception("Job ranking failed; returning empty list")
            return RankedJobList(jobs=[], scored=False)


def _ranked(job: JobRecord, entry: ScoreEntry) -> RankedJob:
    return RankedJob(**job.model_dump(), match_score=entry.score, match_reason=entry.reason)
