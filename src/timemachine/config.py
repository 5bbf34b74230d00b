"""Configuration for a Timemachine-tracked root."""

import json
from pathlib import Path

from pydantic import BaseModel, Field

from timemachine.models.identity import Identity

CONFIG_FILE_NAME = ".timemachine.json"


class TimeMachineConfig(BaseModel):
    """Settings read from ``.timemachine.json`` in the tracked root."""

    ghost_name: str = "👻"
    ghost_email: str = "timemachine@localhost"
    initial_message: str = "initial commit"
    history_limit: int = Field(100, ge=1, le=100)
    default_cause: str = "system change"

    @property
    def ghost(self) -> Identity:
        """Identity used when no real actor is known."""
        return Identity(name=self.ghost_name, email=self.ghost_email)

    @classmethod
    def load(cls, root: Path) -> "TimeMachineConfig":
        """Load config from the root, falling back to defaults if absent."""
        config_file = Path(root) / CONFIG_FILE_NAME
        if not config_file.exists():
            return cls()
        data = json.loads(config_file.read_text(encoding="utf-8"))
        return cls.model_validate(data)

    def save(self, root: Path) -> Path:
        config_file = Path(root) / CONFIG_FILE_NAME
        config_file.write_text(
            json.dumps(self.model_dump(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        return config_file
