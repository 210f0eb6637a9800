from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any

import requests
from bs4 import BeautifulSoup

from matchfeed.config import Settings, get_settings
from matchfeed.types import EmploymentType, JobRecord

logger = logging.getLogger(__name__)

ADZUNA_SEARCH_URL = "https://api.adzuna.com/v1/api/jobs/{country}/search/1"

_INTERNSHIP_PATTERN = re.compile(r"\b(intern|interns|internship|trainee)\b")


class AdzunaJobSearch:
    """External listing provider. Failures are logged and surface as no jobs."""

    def __init__(self, settings: Settings | None = None, *, session: requests.Session | None = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def search(self, term: str) -> list[JobRecord]:
        app_id = self.settings.adzuna_app_id.strip()
        app_key = self.settings.adzuna_app_key.strip()
        if not app_id or not app_key:
            logger.warning("Adzuna credentials missing; skipping search for %r", term)
            return []

        logger.info("Searching Adzuna app_id=%s*** term=%r", app_id[:4], term)
        try:
            response = self.session.get(
                ADZUNA_SEARCH_URL.format(country=self.settings.adzuna_country),
                params={
                    "app_id": app_id,
                    "app_key": app_key,
                    "what": term,
                    "results_per_page": self.settings.adzuna_results_per_page,
                    "content-type": "application/json",
                },
                timeout=self.settings.adzuna_timeout_sec,
            )
            response.raise_for_status()
            results = response.json().get("results") or []
        except Exception as exc:
            logger.warning("Adzuna search failed term=%r error=%s", term, exc)
            return []

        jobs = []
        for item in results:
            try:
                jobs.append(normalize_listing(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed Adzuna listing: %s", exc)

        if not jobs:
            logger.warning("Adzuna returned 0 jobs for %r", term)
        else:
            logger.info("Fetched %d jobs for %r", len(jobs), term)
        return jobs


def strip_html(value: str) -> str:
    text = BeautifulSoup(value or "", "html.parser").get_text(" ")
    return " ".join(text.split())


def detect_employment_type(title: str, description: str, contract_time: str | None) -> EmploymentType:
    if _INTERNSHIP_PATTERN.search(f"{title} {description}".lower()):
        return "Internship"
    if contract_time == "contract":
        return "Contract"
    if contract_time == "part_time":
        return "Part-time"
    return "Full-time"


def normalize_listing(item: dict[str, Any]) -> JobRecord:
    title = strip_html(item["title"])
    description = strip_html(item.get("description", ""))
    salary_min = item.get("salary_min")

    posted_at = None
    if item.get("created"):
        posted_at = datetime.fromisoformat(str(item["created"]).replace("Z", "+00:00"))

    return JobRecord(
        id=f"adzuna-{item['id']}",
        title=title,
        company=(item.get("company") or {}).get("display_name", ""),
        location=(item.get("location") or {}).get("display_name", ""),
        description=description,
        employment_type=detect_employment_type(title, description, item.get("contract_time")),
        posted_at=posted_at,
        job_url=item.get("redirect_url", ""),
        salary=format_salary(salary_min),
    )


def format_salary(salary_min: Any) -> str:
    if not isinstance(salary_min, (int, float)) or not salary_min:
        return "Not disclosed"
    if float(salary_min).is_integer():
        return f"₹{int(salary_min)}"
    return f"₹{salary_min}"
