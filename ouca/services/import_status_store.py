from __future__ import annotations

import logging

import redis

from ouca.config import settings
from ouca.schemas.import_status import ImportStatus

logger = logging.getLogger(__name__)


def get_redis() -> redis.Redis:
    return redis.Redis.from_url(settings.REDIS_URL)


class ImportStatusStore:
    """Import statuses and uploaded files, kept in Redis with a TTL.

    Each status key has a single writer (the worker running that job), so a
    plain SET is enough: the last write wins.
    """

    status_prefix = "import_status:"
    file_prefix = "import_file:"

    def __init__(
        self,
        client: redis.Redis,
        status_ttl_seconds: int = settings.IMPORT_STATUS_TTL_SECONDS,
        file_ttl_seconds: int = settings.IMPORT_FILE_TTL_SECONDS,
    ) -> None:
        self.client = client
        self.status_ttl_seconds = status_ttl_seconds
        self.file_ttl_seconds = file_ttl_seconds

    def write(self, status: ImportStatus) -> None:
        self.client.set(
            f"{self.status_prefix}{status.upload_id}",
            status.model_dump_json(),
            ex=self.status_ttl_seconds,
        )

    def read(self, upload_id: str) -> ImportStatus | None:
        raw = self.client.get(f"{self.status_prefix}{upload_id}")
        if raw is None:
            return None
        return ImportStatus.model_validate_json(raw)

    def save_file(self, upload_id: str, content: bytes) -> None:
        self.client.set(f"{self.file_prefix}{upload_id}", content, ex=self.file_ttl_seconds)

    def load_file(self, upload_id: str) -> bytes | None:
        return self.client.get(f"{self.file_prefix}{upload_id}")

    def delete_file(self, upload_id: str) -> None:
        self.client.delete(f"{self.file_prefix}{upload_id}")


def get_status_store() -> ImportStatusStore:
    return ImportStatusStore(get_redis())
