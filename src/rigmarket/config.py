from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[2]

load_dotenv(ROOT / ".env")

StoreBackend = Literal["memory", "sqlite", "redis"]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    store: StoreBackend = "memory"
    sqlite_path: Path = ROOT / "data" / "rigmarket.db"
    redis_url: str = "redis://127.0.0.1:6379/0"
    redis_prefix: str = "rigmarket"
    seed_demo_data: bool = True
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    port: int = 8000


def load_settings() -> Settings:
    store = os.getenv("RIGMARKET_STORE", "memory").strip().lower()
    if store not in {"memory", "sqlite", "redis"}:
        store = "memory"
    sqlite_path = Path(os.getenv("RIGMARKET_SQLITE_PATH", str(ROOT / "data" / "rigmarket.db")))
    if not sqlite_path.is_absolute():
        sqlite_path = ROOT / sqlite_path
    return Settings(
        store=store,
        sqlite_path=sqlite_path,
        redis_url=os.getenv("RIGMARKET_REDIS_URL", "redis://127.0.0.1:6379/0").strip(),
        redis_prefix=os.getenv("RIGMARKET_REDIS_PREFIX", "rigmarket").strip() or "rigmarket",
        seed_demo_data=_env_bool("RIGMARKET_SEED_DEMO_DATA", True),
        cors_origins=_env_list("RIGMARKET_CORS_ORIGINS", ["*"]),
        log_level=os.getenv("RIGMARKET_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        port=_env_int("PORT", 8000),
    )
