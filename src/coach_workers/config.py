"""Worker settings read once from the environment at startup.

The LISTEN connection can point at a direct Postgres URL when DATABASE_URL
goes through a transaction pooler, which drops NOTIFY subscriptions.
COACH_CONDITION_MAPPING_PATH swaps in a JSON translation table for anamnesis
labels; unset means the built-in v1 table.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Config:
    database_url: str
    listen_database_url: str
    poll_interval_seconds: float = 5.0
    batch_size: int = 10
    max_retries: int = 3
    health_port: int = 8081
    log_format: str = "json"
    condition_mapping_path: str | None = None

    @classmethod
    def from_env(cls) -> "Config":
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise RuntimeError("DATABASE_URL must be set")

        return cls(
            database_url=database_url,
            listen_database_url=os.environ.get("COACH_WORKER_LISTEN_DATABASE_URL") or database_url,
            poll_interval_seconds=float(os.environ.get("COACH_POLL_INTERVAL", "5.0")),
            batch_size=int(os.environ.get("COACH_BATCH_SIZE", "10")),
            max_retries=int(os.environ.get("COACH_MAX_RETRIES", "3")),
            health_port=int(os.environ.get("COACH_HEALTH_PORT", "8081")),
            log_format=os.environ.get("COACH_LOG_FORMAT", "json"),
            condition_mapping_path=os.environ.get("COACH_CONDITION_MAPPING_PATH") or None,
        )
