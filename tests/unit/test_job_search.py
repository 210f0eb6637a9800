from __future__ import annotations

import requests

from matchfeed.config import Settings
from matchfeed.core.job_search import AdzunaJobSearch, detect_employment_type, normalize_listing


class FakeResponse:
    def __init__(self, payload: dict, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> dict:
        return self._payload


class FakeSession:
    def __init__(self, response: FakeResponse | Exception) -> None:
        self.response = response
        self.calls: list[dict] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


LISTING = {
    "id": "4567",
    "title": "<strong>Backend</strong> Developer",
    "description": "Work on <em>Python</em> APIs for our platform.",
    "company": {"display_name": "Acme Labs"},
    "location": {"display_name": "Pune, Maharashtra"},
    "contract_time": "contract",
    "salary_min": 850000.0,
    "created": "2025-05-30T09:15:00Z",
    "redirect_url": "https://www.adzuna.in/land/ad/4567",
}


def _settings() -> Settings:
    return Settings(adzuna_app_id="abcd1234", adzuna_app_key="secret")


def test_normalize_listing_strips_html_and_prefixes_id() -> None:
    job = normalize_listing(LISTING)

    assert job.id == "adzuna-4567"
    assert job.title == "Backend Developer"
    assert "<em>" not in job.description
    assert job.company == "Acme Labs"
    assert job.employment_type == "Contract"
    assert job.salary == "₹850000"
    assert job.posted_at is not None and job.posted_at.year == 2025


def test_internship_words_win_over_contract_time() -> None:
    assert detect_employment_type("Data Intern", "", "contract") == "Internship"
    assert detect_employment_type("Graduate Trainee", "", None) == "Internship"
    assert detect_employment_type("Internal tools engineer", "", "part_time") == "Part-time"
    assert detect_employment_type("Engineer", "", None) == "Full-time"


def test_search_sends_term_and_returns_jobs() -> None:
    session = FakeSession(FakeResponse({"results": [LISTING, {"title": "missing id"}]}))
    provider = AdzunaJobSearch(_settings(), session=session)

    jobs = provider.search("python")

    assert [job.id for job in jobs] == ["adzuna-4567"]
    assert session.calls[0]["params"]["what"] == "python"
    assert session.calls[0]["params"]["results_per_page"] == 50
    assert "/jobs/in/search/1" in session.calls[0]["url"]


def test_search_failure_returns_empty_list() -> None:
    provider = AdzunaJobSearch(_settings(), session=FakeSession(requests.ConnectionError("offline")))
    assert provider.search("python") == []


def test_search_without_credentials_skips_request() -> None:
    session = FakeSession(FakeResponse({"results": [LISTING]}))
    provider = AdzunaJobSearch(Settings(adzuna_app_id="", adzuna_app_key=""), session=session)

    assert provider.search("python") == []
    assert session.calls == []
