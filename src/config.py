from __future__ import annotations

from functools import cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from domain.custody_ledger import ScanDecodePolicy

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DB_FILE = PROJECT_ROOT / "custody_ledger.db"


class AppSettings(BaseSettings):
    database_url: str = f"sqlite:///{DB_FILE}"
    scan_decode_policy: ScanDecodePolicy = ScanDecodePolicy.PASSTHROUGH
    sql_echo: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CUSTODY_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@cache
def config() -> AppSettings:
    return AppSettings()
