"""
Shared pytest fixtures and path setup for the settings tests.
"""

import os
import sys
from pathlib import Path

# Set before any schooladmin import so pydantic-settings never reads a real database URL.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "INFO")

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from schooladmin.services.setting_store import ensure_provisioned


@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh SQLite file database per test."""
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'settings.db'}")
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    await ensure_provisioned(engine)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def email_settings():
    return {
        "emailEnabled": True,
        "emailProvider": "smtp",
        "smtpHost": "smtp.example.org",
        "smtpPort": 587,
        "smtpUsername": "mailer",
        "smtpPassword": "secret",
        "smtpFromEmail": "office@example.org",
        "smtpFromName": "Springfield High",
        "emailEncryption": "tls",
    }


@pytest.fixture
def sms_settings():
    return {
        "smsEnabled": True,
        "smsProvider": "twilio",
        "smsApiKey": "AC123",
        "smsApiSecret": "token",
        "smsSenderId": "+15550001111",
    }
