from __future__ import annotations

from matchfeed.config import Settings, get_settings
from matchfeed.core.agent import ToolRouter
from matchfeed.core.cache import CacheStore, MatchCache, SingleFlight, build_cache_store
from matchfeed.core.job_search import AdzunaJobSearch
from matchfeed.core.ranking import JobRankingPipeline
from matchfeed.core.scoring import ScoringOracle
from matchfeed.core.service import MatchFeedService
from matchfeed.core.tools import ToolExecutor
from matchfeed.db.session import SessionLocal
from matchfeed.db.stores import ApplicationStore, JobStore, ResumeStore, SessionFactory
from matchfeed.llm.router import LLMRouter

_SERVICE: MatchFeedService | None = None


def build_service(
    settings: Settings | None = None,
    *,
    llm: LLMRouter | None = None,
    job_search: AdzunaJobSearch | None = None,
    cache_store: CacheStore | None = None,
    session_factory: SessionFactory = SessionLocal,
) -> MatchFeedService:
    settings = settings or get_settings()
    llm = llm or LLMRouter(settings)
    job_search = job_search or AdzunaJobSearch(settings)

    jobs = JobStore(session_factory)
    resumes = ResumeStore(session_factory, email=settings.demo_user_email, password=settings.demo_user_password)
    applications = ApplicationStore(
        session_factory, email=settings.demo_user_email, password=settings.demo_user_password
    )

    pipeline = JobRankingPipeline(
        jobs,
        resumes,
        ScoringOracle(llm, settings=settings),
        page_size=settings.ranking_page_size,
    )
    if cache_store is None:
        cache_store = build_cache_store(settings.redis_url, retry_after_sec=settings.cache_retry_after_sec)
    cache = MatchCache(
        cache_store,
        pipeline.compute,
        flight=SingleFlight(),
        key=settings.cache_key,
        ttl_sec=settings.cache_ttl_sec,
    )
    executor = ToolExecutor(
        jobs=jobs,
        applications=applications,
        job_search=job_search,
        on_jobs_ingested=cache.invalidate,
    )
    return MatchFeedService(
        cache=cache,
        router=ToolRouter(executor, llm, settings=settings),
        jobs=jobs,
        resumes=resumes,
        applications=applications,
        job_search=job_search,
    )


def get_service() -> MatchFeedService:
    global _SERVICE
    if _SERVICE is None:
        _SERVICE = build_service()
    return _SERVICE


def set_service(service: MatchFeedService | None) -> None:
    global _SERVICE
    _SERVICE = service
