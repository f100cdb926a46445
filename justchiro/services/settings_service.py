"""
Settings Service

CMS key/value settings. A fixed subset is publicly readable and a fixed
core subset cannot be deleted.
"""
import logging
from typing import Optional, Dict, Any, Iterable, List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.core.exceptions import Conflict, NotFound, OperationNotAllowed
from justchiro.models.site_setting import SiteSetting, PUBLIC_SETTING_KEYS, CORE_SETTING_KEYS

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class SettingsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def values(self, keys: Iterable[str]) -> Dict[str, Optional[str]]:
        result = await self.db.execute(
            select(SiteSetting.setting_key, SiteSetting.setting_value)
            .where(SiteSetting.setting_key.in_(list(keys)))
        )
        return {key: value for key, value in result.all()}

    async def public(self) -> Dict[str, Optional[str]]:
        return await self.values(PUBLIC_SETTING_KEYS)

    async def list_all(self) -> Dict[str, Dict[str, Any]]:
        result = await self.db.execute(select(SiteSetting).order_by(SiteSetting.setting_key))
        return {
            setting.setting_key: {
                "value": setting.setting_value,
                "type": setting.setting_type,
                "description": setting.description,
                "updatedAt": setting.updated_at.isoformat() if setting.updated_at else None,
            }
            for setting in result.scalars().all()
        }

    async def get_by_key(self, key: str) -> SiteSetting:
        result = await self.db.execute(select(SiteSetting).where(SiteSetting.setting_key == key))
        setting = result.scalar_one_or_none()
        if setting is None:
            raise NotFound("Setting not found")
        return setting

    async def create(self, data: Dict[str, Any]) -> SiteSetting:
        key = data["setting_key"]
        existing = await self.db.execute(select(SiteSetting.id).where(SiteSetting.setting_key == key))
        if existing.first() is not None:
            raise Conflict("Setting already exists", details={"setting_key": key})

        setting = SiteSetting(
            setting_key=key,
            setting_value=_as_text(data.get("setting_value")) or "",
            setting_type=data.get("setting_type") or "text",
            description=data.get("description") or "",
        )
        self.db.add(setting)
        await self.db.flush()
        return setting

    async def update_value(self, key: str, value: Any) -> Tuple[Optional[str], SiteSetting]:
        setting = await self.get_by_key(key)
        previous = setting.setting_value
        setting.setting_value = _as_text(value)
        await self.db.flush()
        return previous, setting

    async def bulk_update(self, values: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any], List[Dict[str, Any]]]:
        """
        Update every existing key in `values`; unknown keys are ignored.

        Returns (old values, new values, updated rows) for the keys that
        exist.
        """
        if not values:
            return {}, {}, []

        result = await self.db.execute(
            select(SiteSetting).where(SiteSetting.setting_key.in_(list(values.keys())))
        )
        old: Dict[str, Any] = {}
        new: Dict[str, Any] = {}
        updated: List[Dict[str, Any]] = []
        for setting in result.scalars().all():
            key = setting.setting_key
            old[key] = setting.setting_value
            setting.setting_value = _as_text(values[key])
            new[key] = setting.setting_value
            updated.append({"setting_key": key, "setting_value": setting.setting_value})

        ignored = set(values) - set(new)
        if ignored:
            logger.info(f"Bulk settings update ignored unknown keys: {sorted(ignored)}")

        await self.db.flush()
        return old, new, sorted(updated, key=lambda row: row["setting_key"])

    async def delete(self, key: str) -> Tuple[int, Dict[str, Any]]:
        if key in CORE_SETTING_KEYS:
            raise OperationNotAllowed("Cannot delete core settings", details={"setting_key": key})

        setting = await self.get_by_key(key)
        setting_id = setting.id
        before = setting.to_dict()
        await self.db.delete(setting)
        await self.db.flush()
        return setting_id, before
