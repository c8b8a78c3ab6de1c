import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Tuple

# Absolute path to the project root so scripts can locate the shared .env file.
PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_BASE_URL = "https://entryboss.cc"
DEFAULT_USER_AGENT = "racecal/0.1 (club race calendar)"


@lru_cache(maxsize=1)
def _read_env_file() -> Dict[str, str]:
    """
    KEY=VALUE pairs from the project .env file, read once per process.
    Blank lines, comments and lines without '=' are ignored.
    """
    env_path = PROJECT_ROOT / ".env"
    if not env_path.exists():
        return {}

    values: Dict[str, str] = {}
    for line in env_path.read_text(encoding="utf-8").splitlines():
        key, sep, value = line.strip().partition("=")
        if not sep or key.startswith("#"):
            continue
        values[key.strip()] = value.strip().strip("\"'")
    return values


def get_env_var(name: str, default: Optional[str] = None) -> Optional[str]:
    """Process environment first, then the .env file, then ``default``."""
    value = os.getenv(name)
    if value is None:
        value = _read_env_file().get(name)
    return default if value is None else value


def _get_float(name: str, default: float) -> float:
    raw = get_env_var(name)
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable '{name}' must be a number, got {raw!r}.") from None


def _get_regions(name: str, default: str) -> Optional[Tuple[str, ...]]:
    raw = get_env_var(name, default) or ""
    codes = tuple(part.strip().upper() for part in raw.split(",") if part.strip())
    if not codes or "ALL" in codes:
        return None
    return codes


@dataclass(frozen=True)
class Settings:
    base_url: str
    request_delay: float
    request_timeout: float
    user_agent: str
    data_dir: Path
    regions: Optional[Tuple[str, ...]]

    @property
    def clubs_path(self) -> Path:
        return self.data_dir / "clubs.json"

    @property
    def events_path(self) -> Path:
        return self.data_dir / "events.json"


def load_settings() -> Settings:
    data_dir = get_env_var("RACECAL_DATA_DIR")
    return Settings(
        base_url=(get_env_var("RACECAL_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
        request_delay=_get_float("RACECAL_REQUEST_DELAY", 1.0),
        request_timeout=_get_float("RACECAL_REQUEST_TIMEOUT", 15.0),
        user_agent=get_env_var("RACECAL_USER_AGENT") or DEFAULT_USER_AGENT,
        data_dir=Path(data_dir) if data_dir else PROJECT_ROOT / "data",
        regions=_get_regions("RACECAL_REGIONS", "VIC"),
    )
