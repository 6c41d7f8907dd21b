"""Project-wide constants (chunk size, naming conventions, limits)."""

CHUNK_SIZE_BYTES: int = 1024 * 1024  # 1 MiB fixed chunk size

PROFILE_PHOTO_PREFIX: str = "profile_photo_"
PROFILE_PHOTO_DEFAULT_EXTENSION: str = "jpg"
PROFILE_PHOTO_PROGRESS_KEY: str = "profile_photo"
PROFILE_PHOTO_MAX_BYTES: int = 5 * 1024 * 1024

BULK_ITEM_DELAY_SECONDS: float = 0.1

RECENT_OPERATIONS_LIMIT: int = 10

DEFAULT_VAULT_PORT: int = 8000

PRINCIPAL_PATTERN: str = r"^[a-z0-9]{1,5}(-[a-z0-9]{1,5})*$"
