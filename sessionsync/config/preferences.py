"""User preferences persisted next to the credential store."""

from pydantic import BaseModel, Field, ValidationError

from sessionsync.config.settings import ConfigurationError
from sessionsync.core.logging import get_logger
from sessionsync.storage.base import BaseJsonStorage


logger = get_logger(__name__)


class AppPreferences(BaseModel):
    """Remembered remote import URL and export file path."""

    url: str = Field(default="", description="Remote import API URL")
    file_path: str = Field(default="", description="Export file path")


class PreferencesStorage(BaseJsonStorage):
    """Reads and writes ``AppPreferences`` as JSON."""

    async def load(self) -> AppPreferences:
        """Load preferences; a missing file yields the defaults.

        Raises:
            ConfigurationError: If the file holds unexpected values
            StoreCorruptError: If the file is not valid JSON
        """
        data = await self._read_json()
        if data is None:
            return AppPreferences()
        try:
            return AppPreferences.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid preferences in {self.file_path}: {e}"
            ) from e

    async def save(self, preferences: AppPreferences) -> None:
        await self._write_json(preferences.model_dump())
        logger.debug("preferences_saved", path=str(self.file_path))
