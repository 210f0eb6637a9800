from __future__ import annotations

import logging
import random
from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from matchfeed.config import Settings, get_settings
from matchfeed.core.race import RaceTimeout, race_with_timeout
from matchfeed.llm.prompts import MATCH_SCORING_JOB_LINE, MATCH_SCORING_PROMPT
from matchfeed.llm.providers import parse_json
from matchfeed.llm.router import LLMRouter, LLMUnavailableError
from matchfeed.types import JobRecord, ScoreEntry

logger = logging.getLogger(__name__)

FALLBACK_REASON = "Fast Match (AI Busy) - Keywords detected."


class ScoringParseError(ValueError):
    pass


class _ScoredJob(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    score: float
    reason: str = ""


class _ScoreBatch(BaseModel):
    scores: list[_ScoredJob]


class ScoringOracle:
    """Scores a batch of jobs against resume text with one bounded LLM call.

    Every failure mode (timeout, provider error, unparseable output) yields the
    heuristic band instead, so callers always receive one entry per job.
    """

    def __init__(
        self,
        llm: LLMRouter | None = None,
        *,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ):
        self.settings = settings or get_settings()
        self.llm = llm or LLMRouter(self.settings)
        self.rng = rng or random.Random()

    async def score(self, resume_text: str, jobs: Sequence[JobRecord]) -> dict[str, ScoreEntry]:
        if not jobs:
            return {}

        prompt = self.build_prompt(resume_text, jobs)
        logger.info("Scoring %d jobs (timeout=%ss)", len(jobs), self.settings.scoring_timeout_sec)
        try:
            content = await race_with_timeout(
                lambda: self.llm.score_matches(prompt),
                self.settings.scoring_timeout_sec,
                label="match scoring",
            )
            return parse_scores(content)
        except (RaceTimeout, LLMUnavailableError, ScoringParseError) as exc:
            logger.warning("AI scoring skipped: %s", exc)
        except Exception as exc:
            logger.warning("AI scoring failed unexpectedly: %s", exc)
        return self.heuristic_scores(jobs)

    def build_prompt(self, resume_text: str, jobs: Sequence[JobRecord]) -> str:
        description_limit = self.settings.description_prefix_chars
        job_list = "\n".join(
            MATCH_SCORING_JOB_LINE.format(
                job_id=job.id,
                title=job.title,
                description=(job.description or "")[:description_limit],
            )
            for job in jobs
        )
        return MATCH_SCORING_PROMPT.format(
            resume_text=resume_text[: self.settings.resume_prefix_chars],
            job_list=job_list,
        )

    def heuristic_scores(self, jobs: Sequence[JobRecord]) -> dict[str, ScoreEntry]:
        low = self.settings.fallback_score_min
        high = self.settings.fallback_score_max
        return {
            job.id: ScoreEntry(score=self.rng.randint(low, high), reason=FALLBACK_REASON)
            for job in jobs
        }


def parse_scores(content: str) -> dict[str, ScoreEntry]:
    data = parse_json(content)
    if not data:
        raise ScoringParseError("scoring output was not a JSON object")

    try:
        batch = _ScoreBatch.model_validate(data)
        return {
            item.job_id: ScoreEntry(score=item.score, reason=item.reason)
            for item in batch.scores
        }
    except ValidationError as exc:
        raise ScoringParseError(f"invalid scoring payload: {exc.error_count()} errors") from exc
