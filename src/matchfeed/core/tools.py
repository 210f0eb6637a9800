from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from matchfeed.core.commands import Command, ReadHistoryCommand, SearchCommand, SetFilterCommand
from matchfeed.core.job_search import AdzunaJobSearch
from matchfeed.db.stores import ApplicationStore, JobStore
from matchfeed.types import ChatAction, ChatReply

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 5
NO_APPLICATIONS_REPLY = "No applications found."


class ToolExecutor:
    def __init__(
        self,
        *,
        jobs: JobStore,
        applications: ApplicationStore,
        job_search: AdzunaJobSearch,
        on_jobs_ingested: Callable[[], Awaitable[None]],
    ):
        self.jobs = jobs
        self.applications = applications
        self.job_search = job_search
        self.on_jobs_ingested = on_jobs_ingested

    async def execute(self, command: Command) -> ChatReply:
        if isinstance(command, SearchCommand):
            return await self.search_and_ingest(command.term)
        if isinstance(command, ReadHistoryCommand):
            return await self.read_history()
        if isinstance(command, SetFilterCommand):
            return self.set_filter(command.field, command.value)
        raise ValueError(f"unsupported command {command!r}")

    async def search_and_ingest(self, term: str) -> ChatReply:
        logger.info("Agent fetching jobs for %r", term)
        found = await asyncio.to_thread(self.job_search.search, term)
        if found:
            inserted = await asyncio.to_thread(self.jobs.insert_jobs, found)
            logger.info("Ingested %d new jobs (%d returned) for %r", inserted, len(found), term)
            if inserted:
                await self.on_jobs_ingested()

        return ChatReply(
            reply=f"I've updated the feed with the latest {term} jobs!",
            action=ChatAction(type="REFRESH_FEED", term=term),
        )

    async def read_history(self) -> ChatReply:
        recent = await asyncio.to_thread(self.applications.list_recent, HISTORY_LIMIT)
        if not recent:
            return ChatReply(reply=NO_APPLICATIONS_REPLY)
        titles = ", ".join(app.job_title for app in recent)
        return ChatReply(reply=f"You have applied to: {titles}")

    def set_filter(self, field: str, value: str) -> ChatReply:
        return ChatReply(
            reply=f"Filtering for {value}...",
            action=ChatAction(type="UPDATE_FILTER", filter=field, value=value),
        )
