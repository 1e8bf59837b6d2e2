"""Base class for JSON file storage."""

import asyncio
import contextlib
import json
from pathlib import Path
from typing import Any

from sessionsync.core.logging import get_logger
from sessionsync.exceptions import StoreCorruptError, StoreIOError


logger = get_logger(__name__)


class BaseJsonStorage:
    """Common JSON read/write operations with atomic writes.

    File I/O runs in a worker thread so callers never block the event loop.
    """

    def __init__(self, file_path: Path):
        """Initialize JSON storage.

        Args:
            file_path: Path to JSON file for storage
        """
        self.file_path = file_path

    async def _read_json(self, default: Any = None) -> Any:
        """Read JSON data from file.

        Args:
            default: Value returned when the file does not exist

        Returns:
            Parsed JSON data, or ``default`` if the file doesn't exist

        Raises:
            StoreCorruptError: If the file is not valid JSON
            StoreIOError: If the file cannot be read
        """
        if not await self.exists():
            return default

        def read_file() -> Any:
            with self.file_path.open("r", encoding="utf-8") as f:
                return json.load(f)

        try:
            return await asyncio.to_thread(read_file)

        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(
                "json_decode_error",
                path=str(self.file_path),
                error=str(e),
                exc_info=e,
            )
            raise StoreCorruptError(f"Invalid JSON in {self.file_path}: {e}") from e

        except FileNotFoundError:
            # File was deleted between exists() check and read
            return default

        except OSError as e:
            logger.error(
                "file_read_error",
                path=str(self.file_path),
                error=str(e),
                exc_info=e,
            )
            raise StoreIOError(f"Error reading {self.file_path}: {e}") from e

    async def _write_json(self, data: Any) -> None:
        """Write JSON data to file atomically.

        Data is pretty-printed into a temporary file which then replaces the
        target file.

        Raises:
            StoreIOError: If the file cannot be written
        """
        temp_path = self.file_path.with_suffix(".tmp")

        def write_file() -> None:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.chmod(0o600)
            temp_path.replace(self.file_path)

        try:
            await asyncio.to_thread(write_file)
            logger.debug("json_write_success", path=str(self.file_path))

        except (TypeError, ValueError) as e:
            logger.error(
                "json_encode_error",
                path=str(self.file_path),
                error=str(e),
                exc_info=e,
            )
            raise StoreIOError(f"Failed to encode JSON: {e}") from e

        except OSError as e:
            logger.error(
                "file_write_error",
                path=str(self.file_path),
                error=str(e),
                exc_info=e,
            )
            raise StoreIOError(f"Error writing {self.file_path}: {e}") from e

        finally:
            if temp_path.exists():
                with contextlib.suppress(OSError):
                    temp_path.unlink()

    async def exists(self) -> bool:
        """Check if the storage file exists."""
        return await asyncio.to_thread(
            lambda: self.file_path.exists() and self.file_path.is_file()
        )

    def get_location(self) -> str:
        """Get the storage location description."""
        return str(self.file_path)
