"""Uploading category files to an OpenAI vector store."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from openai import OpenAI

from dumpsplit.config import DEFAULT_VECTOR_STORE_PREFIX
from dumpsplit.utils.files import sanitize_file_name

LOGGER = logging.getLogger(__name__)

TERMINAL_BATCH_STATUSES = frozenset({"completed", "failed"})


class BatchPollingTimeout(RuntimeError):
    """Raised when a file batch does not finish in time."""


class BatchFailedError(RuntimeError):
    """Raised when a file batch finishes without completing."""

    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__(f"Vector store file batch failed with status: {status}")


def vector_store_name(prefix: Optional[str], file_name: str, now: datetime) -> str:
    utc = now.astimezone(timezone.utc)
    stamp = utc.strftime("%Y-%m-%dT%H-%M-%S") + f"-{utc.microsecond // 1000:03d}Z"
    return f"{prefix or DEFAULT_VECTOR_STORE_PREFIX}-{sanitize_file_name(file_name)}-{stamp}"


class VectorStoreUploader:
    """Thin wrapper over the Files and Vector Stores APIs."""

    def __init__(
        self,
        client: OpenAI,
        *,
        poll_timeout: float = 10 * 60,
        initial_backoff: float = 1.0,
        max_backoff: float = 20.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.poll_timeout = poll_timeout
        self.initial_backoff = initial_backoff
        self.max_backoff = max_backoff
        self._clock = clock
        self._sleep = sleep

    def upload_files(self, paths: Sequence[Path]) -> List[str]:
        file_ids: List[str] = []
        for path in paths:
            with Path(path).open("rb") as handle:
                upload = self.client.files.create(file=handle, purpose="assistants")
            LOGGER.debug("Uploaded %s as %s", path, upload.id)
            file_ids.append(upload.id)
        return file_ids

    def create_vector_store(self, name: str) -> str:
        vector_store = self.client.vector_stores.create(name=name)
        LOGGER.info("Created vector store %s (%s)", vector_store.id, name)
        return vector_store.id

    def create_file_batch(self, vector_store_id: str, file_ids: Sequence[str]) -> str:
        batch = self.client.vector_stores.file_batches.create(
            vector_store_id=vector_store_id, file_ids=list(file_ids)
        )
        return batch.id

    def poll_file_batch(self, vector_store_id: str, batch_id: str) -> Any:
        """Wait until the batch reaches a terminal status.

        Backs off exponentially between polls, from ``initial_backoff`` up to
        ``max_backoff`` seconds.
        """
        started = self._clock()
        backoff = self.initial_backoff

        while self._clock() - started < self.poll_timeout:
            batch = self.client.vector_stores.file_batches.retrieve(
                batch_id, vector_store_id=vector_store_id
            )
            if batch.status in TERMINAL_BATCH_STATUSES:
                return batch
            LOGGER.debug("Batch %s status=%s, next poll in %.1fs", batch_id, batch.status, backoff)
            self._sleep(backoff)
            backoff = min(backoff * 2, self.max_backoff)

        raise BatchPollingTimeout("Vector store file batch polling timed out")
