"""Completion settings persisted in the app_state table."""

import logging

from pydantic import ValidationError

from forkchat.db.app_state import AppStateStore
from forkchat.db.connection import Database
from forkchat.models import ApiSettings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "api_settings"


class SettingsService:
    def __init__(self, db: Database) -> None:
        self._state = AppStateStore(db)

    async def get(self) -> ApiSettings:
        """Stored settings, or defaults when none are stored or they are unreadable."""
        raw = await self._state.get(SETTINGS_KEY)
        if raw is None:
            return ApiSettings()
        try:
            return ApiSettings.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Ignoring unreadable stored settings: %s", e)
            return ApiSettings()

    async def update(self, changes: dict) -> ApiSettings:
        """Apply a partial update and persist the result.

        Raises:
            ValidationError: If the merged settings are invalid.
        """
        current = await self.get()
        updated = ApiSettings.model_validate({**current.model_dump(), **changes})
        await self._state.set(SETTINGS_KEY, updated.model_dump_json())
        return updated
