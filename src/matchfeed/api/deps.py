from __future__ import annotations

from matchfeed.core.runtime import get_service
from matchfeed.core.service import MatchFeedService


def get_match_service() -> MatchFeedService:
    return get_service()
