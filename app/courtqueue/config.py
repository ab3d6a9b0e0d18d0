"""
Configuration for the court queue.

Environment Variables:
- STATE_DIR: Directory holding the four state snapshots (default: data/state)
- LOG_LEVEL: Logging level (default: INFO)
- JSON_LOGS: Emit JSON log lines instead of human-readable ones
- AUTO_FILL: Start the session armed, refilling groups after every change
- RANDOM_SEED: Optional seed for the first-round shuffle
"""
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Snapshot persistence
    state_dir: str = "data/state"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # Allocation behaviour
    auto_fill: bool = False
    random_seed: int | None = None

    @property
    def participants_path(self) -> Path:
        return Path(self.state_dir) / "participants.json"

    @property
    def stations_path(self) -> Path:
        return Path(self.state_dir) / "stations.json"

    @property
    def groups_path(self) -> Path:
        return Path(self.state_dir) / "groups.json"

    @property
    def first_assignment_path(self) -> Path:
        """Flag recording whether any group has ever been sent to a court."""
        return Path(self.state_dir) / "first_assignment.json"
