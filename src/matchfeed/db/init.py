from __future__ import annotations

from matchfeed.db.base import Base
from matchfeed.db.session import SessionLocal, engine
from matchfeed.db import models  # noqa: F401
from matchfeed.db.seed import seed_demo_user


def init_database() -> dict[str, int]:
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as session:
        created = seed_demo_user(session)
    return {"seeded_users": created}
