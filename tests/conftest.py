from datetime import datetime, timezone

import pytest

from academy.config import AppConfig, SupabaseConfig
from tests.fake_supabase import FakeSupabase

NOW = datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def today():
    return NOW.date()


@pytest.fixture
def config():
    return AppConfig(supabase=SupabaseConfig(url="http://mock.supabase", service_key="service-key"))


@pytest.fixture
def make_db():
    def _make(**tables):
        return FakeSupabase(tables)
    return _make


@pytest.fixture
def db(make_db):
    return make_db()
