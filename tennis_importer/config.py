from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Dict


DEFAULT_API_HOST = "tennis-devs.p.rapidapi.com"
SOURCE_NAME = "SportDevs Tennis API"


def get_proxy_from_env() -> Optional[str]:
    # Prefer PROXY_URL, then HTTPS_PROXY, then HTTP_PROXY, then the file an
    # operator names in TENNIS_ACTIVE_PROXY_FILE
    val = os.getenv("PROXY_URL") or os.getenv("HTTPS_PROXY") or os.getenv("HTTP_PROXY")
    if val:
        return val
    proxy_file = os.getenv("TENNIS_ACTIVE_PROXY_FILE")
    if not proxy_file:
        return None
    try:
        if os.path.exists(proxy_file):
            with open(proxy_file, "r", encoding="utf-8") as f:
                line = f.read().strip()
                return line or None
    except OSError:
        return None
    return None


def get_httpx_proxy() -> Optional[str]:
    # httpx takes a single proxy URL for both schemes
    return get_proxy_from_env()


def _env_bool(key: str, default: bool = False) -> bool:
    val = os.getenv(key)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


def _env_int(key: str, default: int) -> int:
    val = os.getenv(key)
    if val is None or not val.strip():
        return default
    return int(val)


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    api_host: str = DEFAULT_API_HOST
    base_url: Optional[str] = None
    quota_max: int = 50
    provider_daily_limit: int = 300
    quota_backend: str = "sqlite"
    db_path: str = "tennis.db"
    request_timeout: float = 20.0
    reject_undated: bool = False
    operator_token: Optional[str] = None
    secret_key: str = "dev-secret"

    @property
    def api_base_url(self) -> str:
        return (self.base_url or f"https://{self.api_host}").rstrip("/")

    def api_headers(self) -> Dict[str, str]:
        return {
            "X-RapidAPI-Key": self.api_key or "",
            "X-RapidAPI-Host": self.api_host,
            "Accept": "application/json",
        }

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=os.getenv("RAPIDAPI_KEY") or None,
            api_host=os.getenv("TENNIS_API_HOST", DEFAULT_API_HOST),
            base_url=os.getenv("TENNIS_API_BASE_URL") or None,
            quota_max=_env_int("TENNIS_QUOTA_MAX", 50),
            provider_daily_limit=_env_int("TENNIS_PROVIDER_DAILY_LIMIT", 300),
            quota_backend=os.getenv("TENNIS_QUOTA_BACKEND", "sqlite").strip().lower(),
            db_path=os.getenv("TENNIS_DB_PATH", "tennis.db"),
            request_timeout=float(os.getenv("TENNIS_REQUEST_TIMEOUT", "20")),
            reject_undated=_env_bool("TENNIS_REJECT_UNDATED"),
            operator_token=os.getenv("TENNIS_OPERATOR_TOKEN") or None,
            secret_key=os.getenv("FLASK_SECRET_KEY", "dev-secret"),
        )
