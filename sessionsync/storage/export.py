"""Append credentials to an external JSON array file.

Used to hand freshly exchanged credentials to a companion account manager
that keeps its own ``tokens.json``.
"""

from pathlib import Path
from typing import Any

from sessionsync.core.logging import get_logger
from sessionsync.exceptions import StoreCorruptError
from sessionsync.storage.base import BaseJsonStorage
from sessionsync.storage.models import CredentialRecord
from sessionsync.utils.xdg import get_default_export_path


logger = get_logger(__name__)


class ExportFile(BaseJsonStorage):
    """A JSON array file owned by another application."""

    def __init__(self, file_path: Path | None = None):
        super().__init__(file_path or get_default_export_path())

    async def read_entries(self) -> list[Any]:
        """Read the array; a missing, unparsable or non-array file reads as empty."""
        try:
            data = await self._read_json()
        except StoreCorruptError:
            logger.warning("export_file_unparsable", path=str(self.file_path))
            return []
        if not isinstance(data, list):
            if data is not None:
                logger.warning("export_file_not_array", path=str(self.file_path))
            return []
        return data

    async def append(self, entry: dict[str, Any]) -> None:
        """Append one entry, creating the file and its directory if needed."""
        entries = await self.read_entries()
        entries.append(entry)
        await self._write_json(entries)
        logger.info(
            "export_entry_appended", path=str(self.file_path), count=len(entries)
        )

    async def append_record(self, record: CredentialRecord) -> None:
        await self.append(record.to_json_dict())
