"""Persistence for setting rows and one-time provisioning of the relation.

Provisioning composes three idempotent checks inside one transaction:
create-and-seed when the relation is missing, seed when it is empty, and
do nothing otherwise. On PostgreSQL the transaction takes an advisory lock
first so replicas starting together serialize. SQLite has no equivalent;
two processes racing through the empty-table branch there will collide on
the unique ``key`` constraint and the loser fails startup with
``ProvisioningError``.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, func, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from schooladmin.exceptions import DuplicateKeyError, NotFoundError, ProvisioningError
from schooladmin.models.setting import Setting, SettingType
from schooladmin.services.settings_seeder import seed_default_settings

logger = logging.getLogger(__name__)

PROVISION_LOCK_ID = 0x5E771465

PROVISION_CREATED = "created"
PROVISION_SEEDED = "seeded"
PROVISION_SKIPPED = "skipped"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _has_settings_table(sync_conn) -> bool:
    return inspect(sync_conn).has_table(Setting.__tablename__)


async def ensure_provisioned(engine: Optional[AsyncEngine] = None) -> str:
    """Make sure the settings relation exists and holds at least the seed set.

    Returns which branch ran: ``created``, ``seeded`` or ``skipped``.
    """
    if engine is None:
        from schooladmin.database import engine

    try:
        async with engine.begin() as conn:
            if conn.dialect.name == "postgresql":
                await conn.execute(text("SELECT pg_advisory_xact_lock(:lock_id)"), {"lock_id": PROVISION_LOCK_ID})

            if not await conn.run_sync(_has_settings_table):
                await conn.run_sync(Setting.__table__.create)
                await seed_default_settings(conn)
                outcome = PROVISION_CREATED
            else:
                count = (await conn.execute(select(func.count()).select_from(Setting.__table__))).scalar_one()
                if count == 0:
                    await seed_default_settings(conn)
                    outcome = PROVISION_SEEDED
                else:
                    outcome = PROVISION_SKIPPED
    except SQLAlchemyError as e:
        logger.error(f"Settings provisioning failed: {e}")
        raise ProvisioningError(f"Could not provision settings table: {e}") from e

    logger.info(f"Settings provisioning: {outcome}")
    return outcome


async def drop_settings_table(engine: Optional[AsyncEngine] = None) -> bool:
    """Drop the settings relation. Administrative teardown only."""
    if engine is None:
        from schooladmin.database import engine

    async with engine.begin() as conn:
        if not await conn.run_sync(_has_settings_table):
            return False
        await conn.run_sync(Setting.__table__.drop)
    logger.warning("Settings table dropped")
    return True


class SettingStore:
    """Row-level access to the settings table within one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_key(self, key: str) -> Optional[Setting]:
        result = await self.session.execute(select(Setting).where(Setting.key == key))
        return result.scalar_one_or_none()

    async def get_many(self, keys) -> List[Setting]:
        keys = list(keys)
        if not keys:
            return []
        result = await self.session.execute(
            select(Setting).where(Setting.key.in_(keys)).order_by(Setting.id)
        )
        return list(result.scalars().all())

    async def get_all(self, category: Optional[str] = None) -> List[Setting]:
        stmt = select(Setting).order_by(Setting.id)
        if category is not None:
            stmt = stmt.where(Setting.category == category)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def upsert_value(self, key: str, raw_value: Optional[str]) -> Setting:
        """Replace the stored text of an existing key. Never creates keys."""
        setting = await self.get_by_key(key)
        if setting is None:
            raise NotFoundError(key)
        self.apply_value(setting, raw_value)
        return setting

    @staticmethod
    def apply_value(setting: Setting, raw_value: Optional[str]) -> None:
        setting.value = raw_value
        setting.updated_at = _utcnow()

    async def add(
        self,
        key: str,
        raw_value: Optional[str],
        setting_type: SettingType,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Setting:
        if await self.get_by_key(key) is not None:
            raise DuplicateKeyError(key)
        now = _utcnow()
        setting = Setting(
            key=key,
            value=raw_value,
            type=SettingType(setting_type),
            category=category,
            description=description,
            created_at=now,
            updated_at=now,
        )
        self.session.add(setting)
        return setting

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
