from __future__ import annotations

from collections.abc import Callable, Iterable

from sqlalchemy.orm import Session

from matchfeed.db.repositories import Repository
from matchfeed.types import ApplicationRecord, JobRecord

SessionFactory = Callable[[], Session]


class JobStore:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def list_recent_jobs(self, limit: int) -> list[JobRecord]:
        with self.session_factory() as db:
            return [JobRecord.model_validate(row) for row in Repository(db).list_recent_jobs(limit)]

    def insert_jobs(self, jobs: Iterable[JobRecord]) -> int:
        with self.session_factory() as db:
            return Repository(db).insert_jobs(jobs)

    def clear(self) -> int:
        with self.session_factory() as db:
            return Repository(db).delete_all_jobs()


class ResumeStore:
    """Resume text of the single configured user."""

    def __init__(self, session_factory: SessionFactory, *, email: str, password: str = ""):
        self.session_factory = session_factory
        self.email = email
        self.password = password

    def get_current_resume_text(self) -> str | None:
        with self.session_factory() as db:
            user = Repository(db).get_user_by_email(self.email)
            if user is None or not user.resume_text:
                return None
            return user.resume_text

    def replace_resume(self, resume_text: str) -> int:
        with self.session_factory() as db:
            user = Repository(db).replace_resume(self.email, resume_text, password=self.password)
            return user.resume_version


class ApplicationStore:
    def __init__(self, session_factory: SessionFactory, *, email: str, password: str = ""):
        self.session_factory = session_factory
        self.email = email
        self.password = password

    def list_recent(self, limit: int | None = None) -> list[ApplicationRecord]:
        with self.session_factory() as db:
            rows = Repository(db).list_applications(limit=limit)
            return [ApplicationRecord.model_validate(row) for row in rows]

    def upsert(self, *, job_id: str, job_title: str = "", company: str = "", status: str = "Applied") -> ApplicationRecord:
        with self.session_factory() as db:
            repo = Repository(db)
            user = repo.get_or_create_user(self.email, self.password)
            row = repo.upsert_application(
                user_id=user.id,
                job_id=job_id,
                job_title=job_title,
                company=company,
                status=status,
            )
            return ApplicationRecord.model_validate(row)

    def clear(self) -> int:
        with self.session_factory() as db:
            return Repository(db).delete_all_applications()
