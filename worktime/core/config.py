import os

DEFAULT_DATABASE_URL = "postgresql://worktime@localhost/worktime"

EDIT_WINDOW_DAYS_DEFAULT = 30
MAX_PROOF_BYTES_DEFAULT = 5 * 1024 * 1024
MAX_IMPORT_BYTES_DEFAULT = 5 * 1024 * 1024


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc


def database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def environment() -> str:
    return os.getenv("ENV", "dev").lower()


def dev_tokens_enabled() -> bool:
    return environment() in {"dev", "local", "test"}


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def edit_window_days() -> int:
    return _int_env("EDIT_WINDOW_DAYS", EDIT_WINDOW_DAYS_DEFAULT)


def max_proof_bytes() -> int:
    return _int_env("MAX_PROOF_BYTES", MAX_PROOF_BYTES_DEFAULT)


def max_import_bytes() -> int:
    return _int_env("MAX_IMPORT_BYTES", MAX_IMPORT_BYTES_DEFAULT)
