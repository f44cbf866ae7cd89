"""
Typed access to the ``settings`` key/value table.

Rows are read by explicit key lookup into ``UserPreferences``; each value is
validated on load and a bad value falls back to the field default instead of
failing the whole load.
"""

import logging
from typing import Dict

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_snapshots.models import Setting
from portfolio_snapshots.schemas.settings import SETTING_DESCRIPTIONS, UserPreferences

logger = logging.getLogger(__name__)


def _serialize(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def preferences_from_rows(rows: Dict[str, str]) -> UserPreferences:
    values = {}
    for key in UserPreferences.model_fields:
        if key not in rows:
            continue
        try:
            UserPreferences.model_validate({key: rows[key]})
        except ValidationError as e:
            logger.warning(f"Ignoring invalid setting {key}={rows[key]!r}: {e.errors()[0]['msg']}")
            continue
        values[key] = rows[key]

    unknown = set(rows) - set(UserPreferences.model_fields)
    if unknown:
        logger.debug(f"Ignoring unknown settings: {sorted(unknown)}")

    return UserPreferences.model_validate(values)


class PreferencesService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def load(self) -> UserPreferences:
        result = await self.db.execute(select(Setting.key, Setting.value))
        return preferences_from_rows({key: value for key, value in result.all()})

    async def save(self, preferences: UserPreferences) -> UserPreferences:
        """Upsert one row per preference field."""
        result = await self.db.execute(select(Setting))
        existing = {setting.key: setting for setting in result.scalars().all()}

        for key, value in preferences.model_dump().items():
            setting = existing.get(key)
            if setting is None:
                setting = Setting(key=key, description=SETTING_DESCRIPTIONS.get(key, ""))
                self.db.add(setting)
            setting.value = _serialize(value)

        await self.db.commit()
        logger.info("User preferences saved")
        return preferences
