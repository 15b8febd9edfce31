"""
Settings Store

The AppSettings singleton in settings.json. A missing, corrupt or
unrecognizable file (including the pre-category-id format, where
categories were plain strings) reads as the default settings; it must
never stop the app from starting.
"""

from typing import Any, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from finance_tracker.ledgers.base import Ledger
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.finance import AppSettings, default_app_settings
from finance_tracker.validation import validate_input


SETTINGS_DOCUMENT = "settings.json"


class SettingsStore(Ledger):

    async def get(self) -> AppSettings:
        raw = await self._store.read(SETTINGS_DOCUMENT, None)
        if raw is None:
            return default_app_settings()
        if not isinstance(raw, dict):
            self._logger.warning("settings_unexpected_shape", found=type(raw).__name__)
            return default_app_settings()
        try:
            return AppSettings.model_validate(raw)
        except PydanticValidationError as e:
            self._logger.warning("settings_invalid", errors=e.error_count())
            return default_app_settings()

    async def save(self, settings: Union[AppSettings, Mapping[str, Any]]) -> AppSettings:
        """
        Replace the settings document.

        Raises:
            ValidationError: If the settings are invalid
            StorageWriteError: If the document could not be saved
        """
        settings = validate_input(AppSettings, settings)
        await self._store.write(SETTINGS_DOCUMENT, settings.to_document())
        await self._audit(AuditEventBuilder.settings_saved(
            categories=len(settings.categories),
            tags=len(settings.tags),
        ))
        return settings
