"""
Transfer Configuration

Environment-driven settings for storage locations, code lifetime and
upload limits.
"""

import os
from typing import Optional, Tuple

from dropin.domain.transfer.value_objects import MAX_CODE_LENGTH, MIN_CODE_LENGTH

MB = 1024 * 1024


def _int_env(name: str, default: int, minimum: int = 0,
             maximum: Optional[int] = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    if maximum is not None and value > maximum:
        raise ValueError(f"{name} must be <= {maximum}, got {value}")
    return value


def _parse_content_types(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(
        item.strip().lower() for item in raw.split(",") if item.strip()
    )


class TransferConfig:
    """Transfer configuration settings."""

    def __init__(self):
        base_dir = os.getenv("DROPIN_DATA_DIR", "/tmp/dropin")
        self.storage_dir = os.getenv("DROPIN_STORAGE_DIR", os.path.join(base_dir, "uploads"))
        self.metadata_dir = os.getenv("DROPIN_METADATA_DIR", os.path.join(base_dir, "metadata"))

        # "file" (JSON sidecars) or "redis"
        self.registry_backend = os.getenv("REGISTRY_BACKEND", "file").strip().lower()
        if self.registry_backend not in ("file", "redis"):
            raise ValueError(
                f"REGISTRY_BACKEND must be 'file' or 'redis', got {self.registry_backend!r}"
            )

        # Code lifetime
        self.code_ttl_seconds = _int_env("CODE_TTL_SECONDS", 3600, minimum=1)
        self.code_length = _int_env(
            "CODE_LENGTH", 5, minimum=MIN_CODE_LENGTH, maximum=MAX_CODE_LENGTH
        )
        self.code_max_attempts = _int_env("CODE_MAX_ATTEMPTS", 10, minimum=1)
        self.registry_grace_seconds = _int_env("REGISTRY_GRACE_SECONDS", 7200)

        # Upload limits
        self.max_file_size = _int_env("MAX_FILE_SIZE", 100 * MB, minimum=1)
        self.max_batch_size = _int_env("MAX_BATCH_SIZE", 500 * MB, minimum=1)
        self.max_files_per_batch = _int_env("MAX_FILES_PER_BATCH", 50, minimum=1)

        # Empty means content filtering is disabled
        self.allowed_content_types = _parse_content_types(os.getenv("ALLOWED_CONTENT_TYPES"))

        # Sweeper
        self.sweep_interval_seconds = _int_env("SWEEP_INTERVAL_SECONDS", 3600, minimum=1)
        self.orphan_max_age_seconds = _int_env("ORPHAN_MAX_AGE_SECONDS", 7200, minimum=1)

    @property
    def content_filtering_enabled(self) -> bool:
        return bool(self.allowed_content_types)
