from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from matchfeed.config import Settings, get_settings
from matchfeed.core.commands import MalformedCommand, extract_fallback_command, parse_command
from matchfeed.core.race import race_with_timeout
from matchfeed.core.tools import ToolExecutor
from matchfeed.llm.router import LLMRouter
from matchfeed.types import ChatReply

logger = logging.getLogger(__name__)

BUSY_REPLY = "The AI assistant is busy right now. Try asking me to find or search for a job title."
UNPROCESSABLE_REPLY = "I couldn't process that tool command."


class AgentState(str, Enum):
    START = "start"
    CLASSIFYING = "classifying"
    TOOL_CALL = "tool_call"
    PLAIN_REPLY = "plain_reply"
    CLASSIFIER_FAILED = "classifier_failed"
    EXECUTING = "executing"
    FALLBACK_EXTRACTING = "fallback_extracting"
    DONE = "done"


TRANSITIONS: dict[AgentState, set[AgentState]] = {
    AgentState.START: {AgentState.CLASSIFYING},
    AgentState.CLASSIFYING: {AgentState.TOOL_CALL, AgentState.PLAIN_REPLY, AgentState.CLASSIFIER_FAILED},
    AgentState.TOOL_CALL: {AgentState.EXECUTING},
    AgentState.EXECUTING: {AgentState.DONE},
    AgentState.CLASSIFIER_FAILED: {AgentState.FALLBACK_EXTRACTING},
    AgentState.FALLBACK_EXTRACTING: {AgentState.DONE},
    AgentState.PLAIN_REPLY: {AgentState.DONE},
    AgentState.DONE: set(),
}


@dataclass(slots=True)
class AgentRun:
    message: str
    state: AgentState = AgentState.START
    history: list[AgentState] = field(default_factory=lambda: [AgentState.START])

    def advance(self, target: AgentState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise ValueError(f"illegal agent transition {self.state.value} -> {target.value}")
        self.state = target
        self.history.append(target)


class ToolRouter:
    """Turns one chat message into one reply: classify once, fall back once, never loop."""

    def __init__(self, executor: ToolExecutor, llm: LLMRouter | None = None, *, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.executor = executor
        self.llm = llm or LLMRouter(self.settings)

    async def handle(self, message: str) -> ChatReply:
        reply, _ = await self.run(message)
        return reply

    async def run(self, message: str) -> tuple[ChatReply, AgentRun]:
        run = AgentRun(message=message)
        run.advance(AgentState.CLASSIFYING)

        try:
            output = await race_with_timeout(
                lambda: self.llm.classify(message),
                self.settings.classifier_timeout_sec,
                label="intent classification",
            )
        except Exception as exc:
            logger.warning("Classifier unavailable, using keyword fallback: %s", exc)
            run.advance(AgentState.CLASSIFIER_FAILED)
            return await self._fallback(run), run

        command = parse_command(output)
        if command is None:
            run.advance(AgentState.PLAIN_REPLY)
            run.advance(AgentState.DONE)
            return ChatReply(reply=output.strip()), run

        run.advance(AgentState.TOOL_CALL)
        run.advance(AgentState.EXECUTING)
        if isinstance(command, MalformedCommand):
            logger.warning("Malformed tool command (%s): %r", command.reason, command.raw)
            reply = ChatReply(reply=UNPROCESSABLE_REPLY)
        else:
            reply = await self._execute(command)
        run.advance(AgentState.DONE)
        return reply, run

    async def _fallback(self, run: AgentRun) -> ChatReply:
        run.advance(AgentState.FALLBACK_EXTRACTING)
        command = extract_fallback_command(run.message)
        if command is None:
            reply = ChatReply(reply=BUSY_REPLY)
        else:
            logger.info("Fallback search term %r", command.term)
            reply = await self._execute(command)
        run.advance(AgentState.DONE)
        return reply

    async def _execute(self, command) -> ChatReply:
        try:
            return await self.executor.execute(command)
        except Exception:
            logger.exception("Tool execution failed for %r", command)
            return ChatReply(reply=BUSY_REPLY)
