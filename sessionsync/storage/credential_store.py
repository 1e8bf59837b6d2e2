"""Persisted, deduplicated list of credential records."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from sessionsync.core.logging import get_logger
from sessionsync.exceptions import (
    DuplicateIdError,
    DuplicateSessionError,
    NotFoundError,
    StoreCorruptError,
)
from sessionsync.storage.base import BaseJsonStorage
from sessionsync.storage.models import CredentialRecord


logger = get_logger(__name__)

_records_adapter = TypeAdapter(list[CredentialRecord])

_ABSENT = object()


class CredentialStore(BaseJsonStorage):
    """Ordered credential records in a pretty-printed JSON array.

    Every operation is a load-modify-save unit guarded by a per-instance lock.
    One instance is the single writer of its file within the process; separate
    processes writing the same file are not coordinated.
    """

    def __init__(self, file_path: Path):
        super().__init__(file_path)
        self._lock = asyncio.Lock()

    async def _load_unlocked(self) -> list[CredentialRecord]:
        data = await self._read_json(default=_ABSENT)
        if data is _ABSENT:
            logger.debug("credential_store_initialized", path=str(self.file_path))
            await self._write_json([])
            return []

        try:
            return _records_adapter.validate_python(data)
        except ValidationError as e:
            logger.error(
                "credential_store_invalid",
                path=str(self.file_path),
                error_count=e.error_count(),
            )
            raise StoreCorruptError(
                f"Invalid credential records in {self.file_path}: {e}"
            ) from e

    async def _save_unlocked(self, records: list[CredentialRecord]) -> None:
        await self._write_json([record.to_json_dict() for record in records])
        logger.debug(
            "credential_store_saved", path=str(self.file_path), count=len(records)
        )

    @asynccontextmanager
    async def edit(self) -> AsyncIterator[list[CredentialRecord]]:
        """Load the records, let the caller mutate them, then save.

        Nothing is written when the block raises or leaves the list unchanged.
        """
        async with self._lock:
            records = await self._load_unlocked()
            original = list(records)
            yield records
            if records != original:
                await self._save_unlocked(records)

    async def load(self) -> list[CredentialRecord]:
        """Load all records, creating an empty store if none exists.

        Raises:
            StoreCorruptError: If the stored content is not a credential list
            StoreIOError: If the file cannot be read or created
        """
        async with self._lock:
            return await self._load_unlocked()

    async def save(self, records: list[CredentialRecord]) -> None:
        """Overwrite the store with ``records``."""
        async with self._lock:
            await self._save_unlocked(records)

    async def get(self, record_id: str) -> CredentialRecord:
        """Get a record by id.

        Raises:
            NotFoundError: If no record has that id
        """
        for record in await self.load():
            if record.id == record_id:
                return record
        raise NotFoundError(f"Credential record not found: {record_id}")

    async def add(self, record: CredentialRecord) -> None:
        """Append a record.

        Raises:
            DuplicateSessionError: If a record with the same session already exists
            DuplicateIdError: If a record with the same id already exists
        """
        async with self.edit() as records:
            if any(
                existing.session_fingerprint == record.session_fingerprint
                for existing in records
            ):
                raise DuplicateSessionError("This session already exists in the store")
            if any(existing.id == record.id for existing in records):
                raise DuplicateIdError(
                    f"A credential with id {record.id} already exists in the store"
                )
            records.append(record)

        logger.info("credential_added", record_id=record.id)

    async def update(self, record: CredentialRecord) -> None:
        """Replace the record with the same id, keeping its position.

        The stored ``created_at`` is kept.

        Raises:
            NotFoundError: If no record has that id
        """
        async with self.edit() as records:
            for index, existing in enumerate(records):
                if existing.id == record.id:
                    records[index] = record.model_copy(
                        update={"created_at": existing.created_at}
                    )
                    break
            else:
                raise NotFoundError(f"Credential record not found: {record.id}")

        logger.info("credential_updated", record_id=record.id)

    async def delete(self, record_id: str) -> None:
        """Remove the record with ``record_id``; an unknown id is a no-op."""
        async with self.edit() as records:
            before = len(records)
            records[:] = [record for record in records if record.id != record_id]
            removed = before - len(records)

        logger.info("credential_deleted", record_id=record_id, removed=removed)
