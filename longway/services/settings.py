"""API-key setting: stored in plaintext, only ever shown masked."""

from __future__ import annotations

import logging
from typing import Any, Optional

from longway.db.database import Database
from longway.db.setting_repo import SettingRepository
from longway.errors import ValidationFailed
from longway.schemas import SettingsSave, validate

logger = logging.getLogger(__name__)

API_KEY_SETTING = "anthropic_api_key"
API_KEY_PREFIX = "sk-ant-"


def mask_secret(value: str) -> str:
    """``sk-ant-...wxyz`` style preview; short values are hidden entirely."""
    if len(value) <= 11:
        return "*" * len(value)
    return f"{value[:7]}...{value[-4:]}"


class SettingsService:
    def __init__(self, db: Database):
        self.settings = SettingRepository(db)

    def get_api_key(self) -> Optional[str]:
        """The plaintext key, for the assistant client only."""
        return self.settings.get(API_KEY_SETTING)

    def describe(self) -> dict[str, Any]:
        key = self.get_api_key()
        return {"apiKey": mask_secret(key) if key else "", "hasApiKey": bool(key)}

    def save(self, raw: Any) -> None:
        data = validate(SettingsSave, raw)
        if data.apiKey is None:
            return

        key = data.apiKey.strip()
        if not key:
            self.settings.delete(API_KEY_SETTING)
            logger.info("Removed stored API key")
            return
        if not key.startswith(API_KEY_PREFIX):
            raise ValidationFailed("apiKey", f"API key must start with {API_KEY_PREFIX}")

        self.settings.set(API_KEY_SETTING, key)
        logger.info("Stored API key %s", mask_secret(key))
