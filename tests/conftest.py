from __future__ import annotations

import itertools
import os
import sqlite3
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'services.reconciliation_engine'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs
    os.environ.setdefault("RUN_ENV", "test")


@pytest.fixture
def conn(tmp_path):
    from db import schema

    db = sqlite3.connect(str(tmp_path / "t.db"))
    db.execute("PRAGMA foreign_keys=ON;")
    schema.bootstrap(db)
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def clock():
    """Strictly increasing ISO timestamps, one second apart."""
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    counter = itertools.count()
    return lambda: (base + timedelta(seconds=next(counter))).isoformat()


class FakeFetcher:
    def __init__(self, content=None):
        self.content = dict(content or {})
        self.calls = []

    def fetch(self, url):
        from services.errors import AssetFetchFailed

        self.calls.append(url)
        if url not in self.content:
            raise AssetFetchFailed(url, "HTTP 404")
        return self.content[url]


@pytest.fixture
def fetcher():
    return FakeFetcher({
        "https://media.example.com/p1.jpg": b"photo-v1",
        "https://media.example.com/p1-banner.jpg": b"banner-v1",
    })


@pytest.fixture
def engine(conn, clock, fetcher):
    from config.settings import get_settings
    from services.principal import StaticPrincipalProvider
    from services.reconciliation_engine import build_engine

    return build_engine(
        conn,
        settings=get_settings(),
        principal_provider=StaticPrincipalProvider("user-1"),
        fetcher=fetcher,
        clock=clock,
    )


def make_profile(linkedin_id="p1", **overrides):
    record = {
        "linkedin_id": linkedin_id,
        "full_name": "Alice Example",
        "headline": "Engineer at Acme",
        "location": "Berlin, Germany",
        "summary": "Builds data pipelines.",
        "experience": [{"company": "Acme", "title": "Engineer"}],
        "education": [{"school": "TU Berlin"}],
        "skills": ["python", "sql"],
        "connections_count": "500+",
        "profile_url": f"https://www.linkedin.com/in/{linkedin_id}/",
        "profile_image_url": "https://media.example.com/p1.jpg",
    }
    record.update(overrides)
    return record
