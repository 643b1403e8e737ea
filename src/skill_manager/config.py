"""Settings for the skill manager.

Settings live in a small JSON file (``~/.skill-manager/config.json`` unless
``SKILL_MANAGER_CONFIG`` points elsewhere). Anything missing from the file
falls back to the defaults below, so an absent file is a valid config.
"""

import json
import os
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .agents import GLOBAL_SKILLS_DIR, AgentRegistry
from .errors import ConfigError, HomeDirectoryError
from .log import get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = "SKILL_MANAGER_CONFIG"
CONFIG_DIR_NAME = ".skill-manager"

DEFAULT_TOOL = ["npx"]
DEFAULT_LEDGER_PATH = ".gemini/antigravity/skill_sources.json"
DEFAULT_METADATA_FILE = "SKILL.md"


def resolve_home(home: Optional[Path] = None) -> Path:
    """Return `home` or the current user's home directory.

    Raises HomeDirectoryError when the platform cannot tell us where home is.
    """
    if home is not None:
        return Path(home)
    try:
        return Path.home()
    except (RuntimeError, KeyError) as e:
        logger.error("Could not resolve home directory: %s", e)
        raise HomeDirectoryError() from e


def get_config_path() -> Path:
    """Get the path to the skill manager config file."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return resolve_home() / CONFIG_DIR_NAME / "config.json"


class Settings(BaseModel):
    """Resolved skill manager configuration."""
    model_config = {"extra": "ignore"}

    tool: List[str] = Field(default_factory=lambda: list(DEFAULT_TOOL), min_length=1)
    ledger_path: str = DEFAULT_LEDGER_PATH
    global_dir: str = GLOBAL_SKILLS_DIR
    metadata_file: str = DEFAULT_METADATA_FILE
    agents: Dict[str, str] = Field(default_factory=dict)
    install_global: bool = True
    target_agents: List[str] = Field(default_factory=lambda: ["antigravity"])
    auto_confirm: bool = True
    log_level: str = "WARNING"
    home: Optional[str] = None

    @field_validator("tool", mode="before")
    @classmethod
    def split_tool(cls, value: Any) -> Any:
        # "bunx --bun" -> ["bunx", "--bun"]
        if isinstance(value, str):
            return shlex.split(value)
        return value

    @field_validator("target_agents", mode="before")
    @classmethod
    def split_agents(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("home", mode="before")
    @classmethod
    def empty_home(cls, value: Any) -> Any:
        return value or None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Validate `data`, raising ConfigError on bad values."""
        unknown = sorted(set(data) - set(cls.model_fields))
        if unknown:
            logger.warning("Ignoring unknown settings: %s", ", ".join(unknown))
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(_describe(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()

    def resolve_home(self) -> Path:
        return resolve_home(Path(self.home).expanduser() if self.home else None)

    def registry(self) -> AgentRegistry:
        return AgentRegistry.with_overrides(self.agents)

    def ledger_file(self, home: Optional[Path] = None) -> Path:
        path = Path(self.ledger_path).expanduser()
        if path.is_absolute():
            return path
        return (home or self.resolve_home()) / path

    def global_skills_dir(self, home: Optional[Path] = None) -> Path:
        return (home or self.resolve_home()) / self.global_dir


def _describe(error: ValidationError) -> str:
    """One line per invalid setting, e.g. ``Setting 'tool': List should have...``."""
    lines = []
    for item in error.errors():
        key = ".".join(str(part) for part in item["loc"]) or "settings"
        lines.append(f"Setting '{key}': {item['msg']}")
    return "\n".join(lines)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load the skill manager configuration.

    A missing file yields defaults; a file that isn't a JSON object raises
    ConfigError rather than silently discarding the user's settings.
    """
    config_path = config_path or get_config_path()
    if not config_path.exists():
        return Settings()
    try:
        with open(config_path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a JSON object")
    return Settings.from_dict(data)


def save_settings(settings: Settings, config_path: Optional[Path] = None) -> Path:
    """Save the skill manager configuration."""
    config_path = config_path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        json.dump(settings.to_dict(), f, indent=2)
    return config_path


def update_setting(key: str, value: Any, config_path: Optional[Path] = None) -> Settings:
    """Set one key, validate it, and persist the result."""
    if key not in Settings.model_fields:
        raise ConfigError(f"Unknown setting: {key}")
    data = load_settings(config_path).to_dict()
    data[key] = value
    settings = Settings.from_dict(data)
    save_settings(settings, config_path)
    return settings
