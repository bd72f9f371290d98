from __future__ import annotations

from typing import Generator

import pytest
from sqlalchemy.orm import Session, sessionmaker

from pytests.common import create_empty_sqlite_db


@pytest.fixture()
def tmp_db_session(tmp_path) -> Generator[tuple[Session, object], None, None]:
    """Hermetic temp SQLite DB with every table created. Yields (session, engine)."""

    session, engine = create_empty_sqlite_db(tmp_path / "company_test.sqlite")
    try:
        yield session, engine
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def session_factory(tmp_db_session):
    """sessionmaker bound to the temp DB, for components that open their own sessions."""

    _session, engine = tmp_db_session
    return sessionmaker(bind=engine, future=True)


@pytest.fixture()
def sample_profile() -> dict:
    """A provider company profile with every nested field populated."""

    return {
        "linkedin_internal_id": "1441",
        "name": "Acme Cloud",
        "description": "Cloud software for everyone.",
        "website": "https://acme.example.com",
        "industry": "Software Development",
        "company_size": [51, 200],
        "company_size_on_linkedin": 180,
        "company_type": "Privately Held",
        "founded_year": 2009,
        "follower_count": 12345,
        "tagline": "Build faster",
        "universal_name_id": "acme-cloud",
        "specialities": ["Cloud Computing", " SaaS ", "Cloud Computing"],
        "hq": {"country": "US", "city": "Austin", "is_hq": True},
        "locations": [
            {
                "country": "US",
                "city": "Austin",
                "postal_code": "78701",
                "line_1": "100 Congress Ave",
                "is_hq": True,
                "state": "TX",
            },
            {"country": "DE", "city": "Berlin", "is_hq": False},
            {"city": "Nowhere"},
        ],
        "updates": [
            {
                "article_link": "https://acme.example.com/blog/1",
                "image": "https://cdn.example.com/1.png",
                "posted_on": {"day": 5, "month": 3, "year": 2024},
                "text": "We shipped!",
                "total_likes": 42,
            },
            {"text": "No link or date here"},
        ],
        "affiliated_companies": [
            {
                "name": "Acme Labs",
                "link": "https://www.linkedin.com/company/acme-labs",
                "industry": "Research",
                "location": "Austin, TX",
            },
            {"name": "Acme Ventures"},
        ],
        "similar_companies": [
            {
                "name": "Globex",
                "link": "https://www.linkedin.com/company/globex",
                "industry": "Software Development",
                "location": "Springfield",
            },
            {"link": "https://www.linkedin.com/company/nameless"},
        ],
        "categories": ["b2b"],
    }
