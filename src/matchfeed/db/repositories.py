from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from matchfeed.db.base import utcnow
from matchfeed.db.models import Application, Job, User
from matchfeed.types import JobRecord

logger = logging.getLogger(__name__)


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def get_user_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email))

    def get_or_create_user(self, email: str, password: str = "") -> User:
        user = self.get_user_by_email(email)
        if user is not None:
            return user

        user = User(email=email, password=password)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def replace_resume(self, email: str, resume_text: str, password: str = "") -> User:
        user = self.get_user_by_email(email)
        if user is None:
            user = User(email=email, password=password)
            self.session.add(user)

        user.resume_text = resume_text
        user.resume_version = (user.resume_version or 0) + 1

        self.session.commit()
        self.session.refresh(user)
        return user

    def list_recent_jobs(self, limit: int = 50) -> list[Job]:
        statement = select(Job).order_by(Job.posted_at.desc(), Job.id).limit(limit)
        return list(self.session.scalars(statement).all())

    def insert_jobs(self, jobs: Iterable[JobRecord]) -> int:
        """Insert jobs whose id is not stored yet; existing rows are never overwritten."""
        pending: dict[str, JobRecord] = {}
        for job in jobs:
            pending.setdefault(job.id, job)
        if not pending:
            return 0

        existing = set(self.session.scalars(select(Job.id).where(Job.id.in_(list(pending)))).all())
        fresh = [job for job_id, job in pending.items() if job_id not in existing]
        if not fresh:
            return 0

        self.session.add_all([_job_row(job) for job in fresh])
        try:
            self.session.commit()
            return len(fresh)
        except IntegrityError:
            # a concurrent ingest stored some of the same ids first
            self.session.rollback()
            logger.warning("Bulk job insert collided; retrying row by row")

        inserted = 0
        for job in fresh:
            try:
                with self.session.begin_nested():
                    self.session.add(_job_row(job))
                inserted += 1
            except IntegrityError:
                continue
        self.session.commit()
        return inserted

    def delete_all_jobs(self) -> int:
        result = self.session.execute(delete(Job))
        self.session.commit()
        return result.rowcount or 0

    def list_applications(self, limit: int | None = None) -> list[Application]:
        statement = select(Application).order_by(Application.applied_at.desc(), Application.id.desc())
        if limit is not None:
            statement = statement.limit(limit)
        return list(self.session.scalars(statement).all())

    def upsert_application(
        self,
        *,
        user_id: int,
        job_id: str,
        job_title: str = "",
        company: str = "",
        status: str = "Applied",
    ) -> Application:
        existing = self.session.scalar(
            select(Application).where(Application.user_id == user_id, Application.job_id == job_id)
        )
        if existing:
            existing.status = status
            obj = existing
        else:
            obj = Application(
                user_id=user_id,
                job_id=job_id,
                job_title=job_title,
                company=company,
                status=status,
                applied_at=utcnow(),
            )
            self.session.add(obj)

        self.session.commit()
        self.session.refresh(obj)
        return obj

    def delete_all_applications(self) -> int:
        result = self.session.execute(delete(Application))
        self.session.commit()
        return result.rowcount or 0


def _job_row(job: JobRecord) -> Job:
    return Job(
        id=job.id,
        title=job.title,
        company=job.company,
        location=job.location,
        description=job.description,
        employment_type=job.employment_type,
        posted_at=job.posted_at or utcnow(),
        job_url=job.job_url,
        salary=job.salary,
    )
