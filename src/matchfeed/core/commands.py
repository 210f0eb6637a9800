from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

COMMAND_MARKER = "CALL:"

SEARCH_KEYWORDS = ("find", "search")
STOP_WORDS = frozenset({"find", "search", "jobs", "me", "for"})
DEFAULT_SEARCH_TERM = "Developer"

_QUOTED_ARG = re.compile(r'"([^"]*)"')
_TOOL_NAME = re.compile(r"\s*([A-Za-z_]+)")
_WORD_EDGE = "\"'`?!.,;:()"


class ToolName(str, Enum):
    FETCH_AND_SEARCH = "FETCH_AND_SEARCH"
    GET_APPLICATIONS = "GET_APPLICATIONS"
    UPDATE_FILTER = "UPDATE_FILTER"


@dataclass(frozen=True, slots=True)
class SearchCommand:
    term: str


@dataclass(frozen=True, slots=True)
class ReadHistoryCommand:
    pass


@dataclass(frozen=True, slots=True)
class SetFilterCommand:
    field: str
    value: str


@dataclass(frozen=True, slots=True)
class MalformedCommand:
    raw: str
    reason: str


Command = SearchCommand | ReadHistoryCommand | SetFilterCommand
ParsedCommand = Command | MalformedCommand


def has_command_marker(text: str) -> bool:
    return COMMAND_MARKER in text


def parse_command(text: str) -> ParsedCommand | None:
    """Parse classifier output. ``None`` means the text is a plain reply.

    Arguments are the double-quoted tokens after the tool name, taken
    positionally; extra arguments are ignored, missing ones make the command
    malformed.
    """
    if not has_command_marker(text):
        return None

    rest = text.split(COMMAND_MARKER, 1)[1]
    name_match = _TOOL_NAME.match(rest)
    if name_match is None:
        return MalformedCommand(raw=text, reason="missing tool name")

    try:
        tool = ToolName(name_match.group(1).upper())
    except ValueError:
        return MalformedCommand(raw=text, reason=f"unknown tool {name_match.group(1)}")

    args = [arg.strip() for arg in _QUOTED_ARG.findall(rest[name_match.end():])]

    if tool is ToolName.GET_APPLICATIONS:
        return ReadHistoryCommand()
    if tool is ToolName.FETCH_AND_SEARCH:
        if len(args) < 1 or not args[0]:
            return MalformedCommand(raw=text, reason="search needs a term")
        return SearchCommand(term=args[0])
    if len(args) < 2 or not args[0] or not args[1]:
        return MalformedCommand(raw=text, reason="filter needs a field and a value")
    return SetFilterCommand(field=args[0], value=args[1])


def extract_fallback_command(message: str) -> SearchCommand | None:
    """Keyword heuristic used when the classifier is unavailable.

    Picks the first word that is not a stop word, so "find me a Python job"
    yields "a". Kept as-is for compatibility with existing chat behaviour.
    """
    lowered = message.lower()
    if not any(keyword in lowered for keyword in SEARCH_KEYWORDS):
        return None

    for word in message.split():
        cleaned = word.strip(_WORD_EDGE)
        if cleaned and cleaned.lower() not in STOP_WORDS:
            return SearchCommand(term=cleaned)
    return SearchCommand(term=DEFAULT_SEARCH_TERM)
