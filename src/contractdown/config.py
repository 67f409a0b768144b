import os

_FALSY = {"0", "false", "no", "off"}


def get_log_level() -> str:
    return os.getenv("CONTRACTDOWN_LOG_LEVEL", "WARNING").upper()


def get_strict() -> bool:
    """Strict extraction fails on any contract issue; lenient mode only logs them."""
    return os.getenv("CONTRACTDOWN_STRICT", "true").strip().lower() not in _FALSY


def get_host() -> str:
    return os.getenv("CONTRACTDOWN_HOST", "127.0.0.1")


def get_port() -> int:
    raw = os.getenv("CONTRACTDOWN_PORT", "8000")
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"CONTRACTDOWN_PORT must be an integer, got '{raw}'") from None
