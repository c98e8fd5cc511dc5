"""
Pytest configuration for the loyalty app tests.

Settings are read (and cached) at import time, so test env vars are set
before anything from `loyalty_app` is imported. AnyIO is pinned to asyncio
because the client core uses asyncio tasks directly.
"""
import os

import pytest

os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_KEY"] = "anon-test-key"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-role-test-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-with-enough-length"
os.environ["PROFILE_RETRY_DELAY_SECONDS"] = "0"
os.environ["SESSION_INIT_TIMEOUT_SECONDS"] = "0.2"

from fakes import FakeSupabase  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()
