from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy.engine import Engine

from ats_resume_store.backend.sql import SqlHandle
from ats_resume_store.config import BACKEND_SQL, Settings
from ats_resume_store.connection.executor import ResilientExecutor
from ats_resume_store.connection.pool import HandlePool
from ats_resume_store.data.db import create_db_engine
from ats_resume_store.models import (
    CertificationEntry,
    EducationEntry,
    ExperienceEntry,
    ResumeRecord,
)
from ats_resume_store.services.resume_repository import ResumeRepository


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """URL of a temporary SQLite database file."""
    return f"sqlite:///{(tmp_path / 'test.db').as_posix()}"


@pytest.fixture
def engine(db_url: str) -> Iterator[Engine]:
    """Create a temporary test database with all tables."""
    engine = create_db_engine(db_url)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_settings(db_url: str) -> Settings:
    """Settings for a local backend without backoff waits."""
    return Settings(
        backend=BACKEND_SQL,
        database_url=db_url,
        pool_size=3,
        max_attempts=3,
        base_delay=0.0,
        max_delay=0.0,
    )


@pytest.fixture
def pool(engine: Engine) -> HandlePool:
    return HandlePool(lambda: SqlHandle(engine), size=3)


@pytest.fixture
def repository(pool: HandlePool) -> ResumeRepository:
    return ResumeRepository(ResilientExecutor(pool, max_attempts=3, base_delay=0, max_delay=0))


@pytest.fixture
def sample_resume() -> ResumeRecord:
    """A resume with every child collection populated."""
    return ResumeRecord(
        name="Ada Lovelace",
        email="ada@example.com",
        phone="+44 20 0000 0000",
        location="London",
        linkedin="linkedin.com/in/ada",
        website="https://ada.dev",
        summary="Analyst and writer on computing engines.",
        skills=["Mathematics", "Algorithms", "Technical writing"],
        experience=[
            ExperienceEntry(
                company="Analytical Engine Co",
                position="Lead Programmer",
                start_date="1842-01-01",
                end_date="1843-09-01",
                description="Wrote the first published algorithm.",
            ),
            ExperienceEntry(
                company="Royal Society",
                position="Translator",
                start_date="1840-03-01",
                end_date="1841-12-31",
            ),
            ExperienceEntry(company="Self-employed", position="Tutor"),
        ],
        education=[
            EducationEntry(
                institution="Private tutoring",
                degree="Mathematics",
                field_of_study="Calculus",
                start_date="1832-01-01",
                end_date="1835-01-01",
            ),
        ],
        certifications=[
            CertificationEntry(name="Notes on the Engine", issuer="Taylor's Scientific Memoirs"),
            CertificationEntry(name="Honorary Fellow", issuer="Society", date="1843-10-01"),
        ],
    )
