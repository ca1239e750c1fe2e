import logging
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)


class Settings(BaseSettings):
    # --- Storage ---
    storage_path: Path = Path("eventlog_storage.sqlite")

    # --- Display ---
    local_tz: str = "UTC" # e.g. "America/Vancouver"; used for day boundaries and display strings
    display_time_format: str = "%I:%M %p"
    display_date_format: str = "%a %b %d %Y"

    # --- Unlock log ---
    unlock_retention: Optional[int] = 1000 # Most recent entries kept; None keeps everything

    # --- Sleep log ---
    sleep_close_stale_open: bool = False # If true, a transition may close an older open record, not only the newest

    # --- Logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="EVENTLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra='ignore'
    )

    def get_local_timezone(self) -> ZoneInfo:
        """Returns the configured timezone, falling back to UTC when the name is unknown."""
        try:
            return ZoneInfo(self.local_tz)
        except (ZoneInfoNotFoundError, ValueError):
            log.warning(f"Timezone '{self.local_tz}' not found. Falling back to UTC.")
            return ZoneInfo("UTC")
